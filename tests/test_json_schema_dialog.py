import json
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")

import json_schema_dialog  # noqa: E402
import schema_inferencer_dialog  # noqa: E402
from json_schema_dialog import SchemaEditor, display_path  # noqa: E402
from json_validator_dialog import JsonValidatorDialog  # noqa: E402
from schema_editor import property_names  # noqa: E402
from schema_inferencer_dialog import SchemaInferencerDialog  # noqa: E402
from schema_model import DRAFT_07, TypedNode, is_required  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def messages(monkeypatch):
    """Record message boxes instead of opening them."""
    shown = []
    record = lambda *args, **kwargs: shown.append(args)
    monkeypatch.setattr(json_schema_dialog, "silent_message", record)
    monkeypatch.setattr(json_schema_dialog, "icon_message", record)
    monkeypatch.setattr(schema_inferencer_dialog, "silent_message", record)
    return shown


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "person.json"
    path.write_text(json.dumps({
        "$schema": DRAFT_07,
        "type": "object",
        "properties": {
            "a": {"type": "string"},
            "b": {"type": "number", "minimum": 5, "maximum": 1},
        },
        "required": ["a"],
    }), encoding="utf-8")
    return path


def test_editor_builds_tree(app, messages, schema_file):
    dialog = SchemaEditor(str(schema_file))
    assert dialog.initial_valid
    root = dialog.tree.topLevelItem(0)
    assert root.childCount() == 2
    assert [root.child(i).text(0) for i in range(2)] == ["a", "b"]
    assert root.child(0).text(1) == "*"
    assert root.child(1).text(4) == "1"
    assert root.text(4) == "0 / 1 below"


def test_editor_rejects_broken_file(app, messages, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ nope", encoding="utf-8")
    dialog = SchemaEditor(str(path))
    assert not dialog.initial_valid
    assert len(messages) == 1


@pytest.mark.parametrize("document", [{"properties": []}, {"required": 5}])
def test_editor_rejects_malformed_schema(app, messages, tmp_path, document):
    path = tmp_path / "malformed.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    dialog = SchemaEditor(str(path))
    assert not dialog.initial_valid
    assert len(messages) == 1


def test_editor_starts_from_given_schema(app, messages):
    """An inferred schema opens unsaved, ready to edit."""
    inferred = TypedNode(kind="object", properties=(("id", TypedNode(kind="number")),),
                         required=("id",))
    dialog = SchemaEditor(schema=inferred)
    assert dialog.initial_valid
    assert dialog.schema is inferred
    assert dialog.filepath is None
    assert dialog.tree.topLevelItem(0).child(0).text(0) == "id"


def test_selecting_a_node_fills_the_form(app, messages, schema_file):
    dialog = SchemaEditor(str(schema_file))
    dialog.select_path(("b",))
    assert dialog.path == ("b",)
    assert dialog.field_name.text() == "b"
    assert not dialog.required_.isChecked()
    assert [item.text() for item in dialog.type_list.selectedItems()] == ["number"]
    assert json.loads(dialog.constraints.toPlainText()) == {"minimum": 5, "maximum": 1}
    assert "b: " in dialog.issues.toPlainText()


def test_move_up_and_down(app, messages, schema_file):
    dialog = SchemaEditor(str(schema_file))
    dialog.select_path(("b",))
    dialog.move_node_up()
    assert property_names(dialog.schema) == ["b", "a"]
    assert dialog.path == ("b",)
    dialog.move_node_down()
    assert property_names(dialog.schema) == ["a", "b"]


def test_update_renames_in_place(app, messages, schema_file):
    dialog = SchemaEditor(str(schema_file))
    dialog.select_path(("a",))
    dialog.field_name.setText("alpha")
    dialog.constraints.setPlainText('{"minLength": 2}')
    dialog.update_node()
    assert messages == []
    assert property_names(dialog.schema) == ["alpha", "b"]
    assert is_required(dialog.schema, "alpha")
    assert dict(dialog.schema.properties)["alpha"] == TypedNode(kind="string", min_length=2)
    assert dialog.path == ("alpha",)


def test_update_refuses_sibling_name(app, messages, schema_file):
    dialog = SchemaEditor(str(schema_file))
    before = dialog.schema
    dialog.select_path(("a",))
    dialog.field_name.setText("b")
    dialog.update_node()
    assert dialog.schema is before
    assert len(messages) == 1


def test_delete_node(app, messages, schema_file):
    dialog = SchemaEditor(str(schema_file))
    dialog.select_path(("a",))
    dialog.del_node()
    assert property_names(dialog.schema) == ["b"]
    assert dialog.schema.required == ()
    assert dialog.path == ()


def test_accept_writes_the_file(app, messages, schema_file):
    dialog = SchemaEditor(str(schema_file))
    dialog.select_path(("a",))
    dialog.del_node()
    dialog.accept_()
    saved = json.loads(schema_file.read_text(encoding="utf-8"))
    assert list(saved["properties"]) == ["b"]
    assert saved["$schema"] == DRAFT_07


def test_display_helpers():
    assert display_path(()) == "root"
    assert display_path(("orders", "items", "id")) == "orders.items.id"


def test_validator_dialog_debounces(app):
    schema = TypedNode(kind="object", required=("a",))
    dialog = JsonValidatorDialog(schema, debounce_ms=500)
    dialog.json_input.setPlainText("{}")
    assert dialog.timer.isActive()
    assert dialog.result is None

    dialog.timer.stop()
    dialog.run_validation()
    assert not dialog.result.valid
    assert dialog.error_list.count() == 1
    assert dialog.error_list.item(0).text().startswith("/a:")


def test_validator_dialog_jumps_to_error(app):
    schema = TypedNode(kind="array", items=TypedNode(kind="number"))
    dialog = JsonValidatorDialog(schema)
    dialog.json_input.setPlainText('[\n  1,\n  "x"\n]')
    dialog.run_validation()
    dialog.go_to_error(dialog.error_list.item(0))
    cursor = dialog.json_input.textCursor()
    assert cursor.blockNumber() == 2
    assert cursor.positionInBlock() == 2


def test_validator_dialog_clears_on_blank_input(app):
    dialog = JsonValidatorDialog(TypedNode(kind="object"))
    dialog.json_input.setPlainText("   ")
    dialog.run_validation()
    assert dialog.result is None
    assert dialog.summary.text() == ""


def test_inferencer_dialog(app, messages):
    dialog = SchemaInferencerDialog(example_text='{"id": 1}')
    ok = dialog.confirmation.button(QtWidgets.QDialogButtonBox.StandardButton.Ok)
    assert not ok.isEnabled()
    dialog.generate()
    assert ok.isEnabled()
    assert property_names(dialog.schema) == ["id"]
    assert json.loads(dialog.preview.toPlainText())["title"] == "Generated Schema"

    dialog.example_input.setPlainText("{ nope")
    dialog.generate()
    assert dialog.schema is None
    assert not ok.isEnabled()
    assert len(messages) == 1


def test_inferencer_rejects_non_standard_constants(app, messages):
    dialog = SchemaInferencerDialog(example_text='{"ratio": NaN}')
    dialog.generate()
    assert dialog.schema is None
    assert messages[0][3].startswith("Line 1, column 11: Unexpected token NaN")


def test_inferencer_reports_too_deep_examples(app, messages, monkeypatch):
    def too_deep(value):
        raise RecursionError
    monkeypatch.setattr(schema_inferencer_dialog, "create_schema_from_json", too_deep)
    dialog = SchemaInferencerDialog(example_text="[[[]]]")
    dialog.generate()
    assert dialog.schema is None
    assert dialog.preview.toPlainText() == ""
    assert messages[0][3] == "The example is nested too deeply."

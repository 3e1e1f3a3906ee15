import json
import logging
from dataclasses import replace

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QFontMetrics
from PyQt6.QtWidgets import *

from json_validator import check_schema
from json_validator_dialog import JsonValidatorDialog
from message_box import icon_message, silent_message
from messages import EN
from schema_editor import (
    ITEMS, FieldDraft, add_field, field_schema_of, items_of, node_at, property_names,
    remove_property, reorder_property, set_items, unique_field_name, update_at,
    update_field,
)
from schema_inferencer_dialog import SchemaInferencerDialog
from schema_model import (
    BooleanSchema, CONSTRAINTS_BY_KIND, PERMISSIVE, SCHEMA_TYPES, TypedNode,
    as_typed_node, effective_kind, from_json, get_description, is_required,
    new_schema, to_json,
)
from validation import ValidationTreeMemo, collect_errors

logger = logging.getLogger(__name__)

# Children are edited through the tree, not the constraint box.
_STRUCTURAL = ("items", "properties", "required")


class SchemaEditor(QDialog):
    def __init__(self, path=None, parent=None, message_table=EN, debounce_ms=500,
                 indent=4, schema=None):
        super().__init__(parent)
        self.setWindowTitle("Schema Editor")
        screen_size = self.screen().size()
        window_width = round(0.75 * screen_size.width())
        window_height = round(window_width / 1.6)
        self.setMinimumWidth(window_width)
        self.setMinimumHeight(window_height)

        self.message_table = message_table
        self.debounce_ms = debounce_ms
        self.indent = indent
        self.validation_tree = ValidationTreeMemo()

        # Main window
        layout_1 = QVBoxLayout()
        layout = QSplitter(Qt.Orientation.Horizontal)

        # Left column
        self.tree = QTreeWidget()
        self.tree.setHeaderLabels(["Node", "", "Type", "Description", "Issues"])
        # Show full text if there’s room
        self.tree.setTextElideMode(Qt.TextElideMode.ElideNone)
        self.tree.itemSelectionChanged.connect(self.view_node)
        self.path = ()  # location of the selected node
        self.tree.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)

        # Right column
        right_col_1 = QWidget()
        right_col = QVBoxLayout()
        right_col_1.setLayout(right_col)

        # Right column -> Field name
        right_col.addWidget(QLabel("Field name:"))
        self.field_name = QLineEdit()
        right_col.addWidget(self.field_name)

        # Right column -> Required?
        self.required_ = QCheckBox()
        self.required_.setText("Required")
        right_col.addWidget(self.required_)

        # Right column -> Type
        right_col.addWidget(QLabel("Type:"))
        self.type_list = QListWidget()
        self.type_list.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.type_list.addItems(SCHEMA_TYPES)
        font = QFontMetrics(self.type_list.font())
        line_height = font.height()
        n_lines = self.type_list.count()
        spacing = self.type_list.spacing()
        frame_width = self.type_list.frameWidth()
        zoom_pct = QApplication.primaryScreen().devicePixelRatio()
        self.type_list.setFixedHeight(int(
            (line_height * n_lines + spacing * (n_lines - 1) + frame_width * 2) * zoom_pct
        ))
        right_col.addWidget(self.type_list)

        # Right column -> Description
        right_col.addWidget(QLabel("Description:"))
        self.description = QTextEdit()
        right_col.addWidget(self.description)

        # Right column -> Constraints
        right_col.addWidget(QLabel("Constraints (JSON):"))
        self.constraints = QPlainTextEdit()
        self.constraints.setPlaceholderText('{"minLength": 1}')
        right_col.addWidget(self.constraints)

        # Right column -> Issues of the selected node and its children
        right_col.addWidget(QLabel("Issues:"))
        self.issues = QPlainTextEdit()
        self.issues.setReadOnly(True)
        right_col.addWidget(self.issues)

        # Right column -> Submit
        update_node_layout = QHBoxLayout()
        self.update_node_button = QPushButton()
        self.update_node_button.setText("Update")
        self.update_node_button.setShortcut("Ctrl+S")
        self.update_node_button.clicked.connect(self.update_node)
        update_node_layout.addStretch()
        update_node_layout.addWidget(self.update_node_button)
        update_node_layout.addStretch()
        right_col.addLayout(update_node_layout)

        # Menu bar -> Edit
        help_ = QAction("&Help", self)
        help_.triggered.connect(self.help)
        help_.setShortcut("F1")
        del_node = QAction("&Delete", self)
        del_node.triggered.connect(self.del_node)
        del_node.setShortcut("Del")
        add_node = QAction("&Add child", self)
        add_node.triggered.connect(self.add_node)
        add_node.setShortcut("Ctrl+N")
        move_up = QAction("Move &up", self)
        move_up.triggered.connect(self.move_node_up)
        move_up.setShortcut("Ctrl+Up")
        move_down = QAction("Move &down", self)
        move_down.triggered.connect(self.move_node_down)
        move_down.setShortcut("Ctrl+Down")
        infer = QAction("&Infer from example", self)
        infer.triggered.connect(self.infer_schema)

        # Menu bar -> Validate
        v_schema = QAction("Validate &schema", self)
        v_schema.triggered.connect(self.validate_schema)
        v_ins = QAction("Validate &data", self)
        v_ins.triggered.connect(self.validate_data)

        # Menu bar -> First-level buttons
        edit_ = QMenu('&Edit', self)
        edit_.addActions([
            add_node,
            del_node,
            move_up,
            move_down,
            infer,
            help_,
        ])
        validate = QMenu("&Validate", self)
        validate.addActions([
            v_schema,
            v_ins
        ])

        # Menu bar
        menu = QMenuBar(self)
        menu.addMenu(edit_)
        menu.addMenu(validate)
        layout_1.setMenuBar(menu)

        # Dialog buttons
        dialog_buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        dialog_buttons.accepted.connect(self.accept_)
        dialog_buttons.rejected.connect(self.reject)

        # Collect to main window
        layout.addWidget(self.tree)
        layout.addWidget(right_col_1)
        # left:right = 3:2, after adding all widgets
        layout.setStretchFactor(0, 3)
        layout.setStretchFactor(1, 2)
        layout_1.addWidget(layout)
        layout_1.addWidget(dialog_buttons)
        self.setLayout(layout_1)

        # Properties; a given schema is used when there is no file to open
        self.schema = schema if schema is not None else new_schema()
        self.filepath = path or None
        self.initial_valid = True
        if path:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    self.schema = from_json(json.load(f))
            except (FileNotFoundError, json.JSONDecodeError, ValueError) as e:
                logger.info("Cannot open schema %s: %s", path, e)
                self.schema = new_schema()
                self.initial_valid = False
                icon_message(
                    self,
                    "File",
                    "Fail to open the schema. The file doesn't exist or isn't a "
                    "schema.",
                    QStyle.StandardPixmap.SP_FileIcon,
                )
                return
        self.refresh_tree()

    def help(self):
        icon_message(
            self,
            "Help",
            "[Shortcuts]\n"
            "Add child: Ctrl N\n"
            "Delete: Del\n"
            "Move up / down: Ctrl Up / Ctrl Down\n"
            "Update: Ctrl S\n"
            "\n"
            "[Symbols]\n"
            "Required field: *\n"
            "Element of array: E\n"
            "\n"
            "[Constraints]\n"
            "Type-specific keywords as JSON, e.g. "
            "{\"minLength\": 1, \"format\": \"email\"}. "
            "Keywords that don't belong to the selected type are dropped.\n"
        )

    def set_schema(self, schema):
        if schema is self.schema:
            return
        self.schema = schema
        self.refresh_tree()

    def validate_schema(self):
        result = check_schema(self.schema)
        tree = self.validation_tree(self.schema, self.message_table)
        lines = [f"At {e.path}, {e.message}" for e in result.errors]
        for path, error in collect_errors(tree):
            lines.append(f"At {display_path(path)}, {error.message}")
        if lines:
            silent_message(self, "warn", "Validator",
                           "Schema is invalid:\n" + "\n".join(lines))
        else:
            silent_message(self, "info", "Validator", "Schema is valid.")

    def validate_data(self):
        dialog = JsonValidatorDialog(self.schema, self.debounce_ms, self)
        dialog.exec()

    def infer_schema(self):
        dialog = SchemaInferencerDialog(self)
        if dialog.exec() != QDialog.DialogCode.Accepted or dialog.schema is None:
            return
        self.path = ()
        self.set_schema(dialog.schema)

    def refresh_tree(self):
        if node_at(self.schema, self.path) is None:
            self.path = ()
        tree = self.validation_tree(self.schema, self.message_table)
        self.tree.clear()
        root_item = QTreeWidgetItem([
            "root",
            "*",
            display_type(self.schema),
            get_description(self.schema),
            display_issues(tree),
        ])
        root_item.setData(0, Qt.ItemDataRole.UserRole, ())
        self.tree.addTopLevelItem(root_item)
        schema_to_tree(root_item, self.schema, (), tree)
        self.tree.expandAll()
        for column in range(3):
            self.tree.resizeColumnToContents(column)
        self.select_path(self.path)

    def select_path(self, path):
        iterator = QTreeWidgetItemIterator(self.tree)
        while iterator.value():
            item = iterator.value()
            if tuple(item.data(0, Qt.ItemDataRole.UserRole)) == tuple(path):
                self.tree.setCurrentItem(item)
                return
            iterator += 1

    def _is_array_element(self, path):
        if not path or path[-1] != ITEMS:
            return False
        return effective_kind(node_at(self.schema, path[:-1])) == "array"

    def view_node(self):
        selected_items = self.tree.selectedItems()
        if len(selected_items) < 1:
            return
        self.path = tuple(selected_items[0].data(0, Qt.ItemDataRole.UserRole))
        node = node_at(self.schema, self.path)
        tree = self.validation_tree(self.schema, self.message_table)
        self.issues.setPlainText("\n".join(
            f"{display_path(path)}: {error.message}"
            for path, error in collect_errors(tree_at(tree, self.path), self.path)
        ))
        self.description.setText(get_description(node))
        self.constraints.setPlainText(constraints_text(node))
        if not self.path:  # root node
            self.required_.setEnabled(False)
            self.field_name.setEnabled(False)
            self.type_list.setEnabled(False)
            self.required_.setChecked(True)
            self.field_name.setText("")
        elif self._is_array_element(self.path):
            self.required_.setEnabled(False)
            self.field_name.setEnabled(False)
            self.type_list.setEnabled(True)
            self.required_.setChecked(False)
            self.field_name.setText("")
        else:
            parent = node_at(self.schema, self.path[:-1])
            self.required_.setEnabled(True)
            self.field_name.setEnabled(True)
            self.type_list.setEnabled(True)
            self.required_.setChecked(is_required(parent, self.path[-1]))
            self.field_name.setText(self.path[-1])

        type_ = effective_kind(node)
        for i in range(self.type_list.count()):
            item = self.type_list.item(i)
            item.setSelected(item.text() == type_)

    def _read_draft(self, name, required):
        type_list = [item.text() for item in self.type_list.selectedItems()]
        if not type_list:
            silent_message(self, "warn", "Invalid change", "Type cannot be empty.")
            return None
        text = self.constraints.toPlainText().strip() or "{}"
        try:
            constraints = json.loads(text)
            validation = from_json(constraints)
        except (json.JSONDecodeError, ValueError) as e:
            silent_message(self, "warn", "Invalid change",
                           f"Constraints are not a valid schema fragment: {e}")
            return None
        # keep the children of the node when its kind allows them
        current = as_typed_node(node_at(self.schema, self.path))
        validation = replace(
            as_typed_node(validation),
            items=current.items,
            properties=current.properties,
            required=current.required,
        )
        return FieldDraft(
            name=name,
            kind=type_list[0],
            description=self.description.toPlainText().strip(),
            required=required,
            validation=validation,
        )

    def update_node(self):
        if not self.path:  # root node
            description = self.description.toPlainText().strip() or None
            self.set_schema(update_at(
                self.schema, (),
                lambda n: replace(as_typed_node(n), description=description)))
            return
        parent_path, old_name = self.path[:-1], self.path[-1]
        if self._is_array_element(self.path):
            draft = self._read_draft("", False)
            if draft is None:
                return
            self.set_schema(update_at(
                self.schema, parent_path,
                lambda parent: set_items(parent, field_schema_of(draft))))
            return

        new_name = self.field_name.text().strip()
        if not new_name:
            silent_message(self, "warn", "Validator", "Field name cannot be empty.")
            return
        siblings = property_names(node_at(self.schema, parent_path))
        if new_name != old_name and new_name in siblings:
            silent_message(self, "warn", "Validator",
                           "Field name occupied by a sibling item.")
            return
        draft = self._read_draft(new_name, self.required_.isChecked())
        if draft is None:
            return
        self.path = parent_path + (new_name,)
        self.set_schema(update_at(
            self.schema, parent_path,
            lambda parent: update_field(parent, old_name, draft)))

    def del_node(self):
        if not self.tree.selectedItems():
            silent_message(self, "info", "Selector", "No item selected.")
            return
        if not self.path:
            silent_message(self, "warn", "Validator", "Cannot delete the root.")
            return
        parent_path, name = self.path[:-1], self.path[-1]
        if self._is_array_element(self.path):
            schema = update_at(self.schema, parent_path,
                               lambda parent: replace(parent, items=None))
        else:
            schema = update_at(self.schema, parent_path,
                               lambda parent: remove_property(parent, name))
        self.path = parent_path
        self.set_schema(schema)

    def add_node(self):
        if not self.tree.selectedItems():
            silent_message(self, "info", "Selector", "No item selected.")
            return
        node = node_at(self.schema, self.path)
        kind = effective_kind(node)
        if kind == "array":
            if isinstance(node, TypedNode) and node.items is not None:
                silent_message(self, "info", "Validator",
                               "The array already has an element schema.")
                return
            self.path = self.path + (ITEMS,)
            self.set_schema(update_at(
                self.schema, self.path[:-1],
                lambda parent: set_items(parent, items_of(parent))))
        elif kind == "object" and not isinstance(node, BooleanSchema):
            name, ok = QInputDialog.getText(
                self, "Add child", "Field name:", text=unique_field_name(node))
            if not ok:
                return
            name = name.strip()
            if not name:
                silent_message(self, "warn", "Validator", "Field name cannot be empty.")
                return
            if name in property_names(node):
                silent_message(self, "warn", "Validator",
                               "Field name occupied by a sibling item.")
                return
            parent_path = self.path
            self.path = parent_path + (name,)
            self.set_schema(update_at(
                self.schema, parent_path,
                lambda parent: add_field(parent, FieldDraft(name=name))))
        else:
            silent_message(
                self, "warn", "Validator",
                "Cannot add child item to an item whose type is not \"array\" or "
                "\"object\"."
            )

    def _move(self, step):
        if not self.path or self._is_array_element(self.path):
            return
        parent_path, name = self.path[:-1], self.path[-1]
        names = property_names(node_at(self.schema, parent_path))
        index = names.index(name)
        self.set_schema(update_at(
            self.schema, parent_path,
            lambda parent: reorder_property(parent, index, index + step)))

    def move_node_up(self):
        self._move(-1)

    def move_node_down(self):
        self._move(1)

    def accept_(self):
        result = check_schema(self.schema)
        if not result.valid:
            silent_message(self, "warn", "Validator", result.errors[0].message)
            return
        if not self.filepath:
            fp, _ = QFileDialog.getSaveFileName(filter='JSON (*.json)')
            if not fp:
                return
            self.filepath = fp
        with open(self.filepath, "w", encoding="utf-8") as f:
            json.dump(to_json(self.schema), f, indent=self.indent, ensure_ascii=False)
        self.accept()


def display_type(node) -> str:
    if node is PERMISSIVE:
        return "any"
    if isinstance(node, BooleanSchema):
        return "nothing"
    return node.kind or ""


def display_path(path) -> str:
    if not path:
        return "root"
    return ".".join(path)


def display_issues(validation_node) -> str:
    own = len(validation_node.own_validation.errors)
    below = validation_node.cumulative_children_errors
    if own == 0 and below == 0:
        return ""
    return f"{own} / {below} below" if below else str(own)


def tree_at(validation_node, path):
    for key in path:
        validation_node = validation_node.children[key]
    return validation_node


def constraints_text(node) -> str:
    typed = as_typed_node(node)
    attrs = [
        attr for attr in CONSTRAINTS_BY_KIND.get(effective_kind(typed), ())
        if attr not in _STRUCTURAL
    ] + ["enum"]
    fragment = to_json(TypedNode(**{attr: getattr(typed, attr) for attr in attrs}))
    return json.dumps(fragment, indent=2, ensure_ascii=False) if fragment else ""


def schema_to_tree(parent, node, path, validation_node):
    assert isinstance(parent, QTreeWidgetItem), "Parent node is not a tree item."
    kind = effective_kind(node)
    if kind == "array":
        if not isinstance(node, TypedNode) or node.items is None:
            return
        child_path = path + (ITEMS,)
        child_validation = validation_node.children[ITEMS]
        self_ = QTreeWidgetItem([
            "", "E",
            display_type(node.items), get_description(node.items),
            display_issues(child_validation),
        ])
        self_.setData(0, Qt.ItemDataRole.UserRole, child_path)
        parent.addChild(self_)
        schema_to_tree(self_, node.items, child_path, child_validation)
    elif kind == "object" and isinstance(node, TypedNode):
        for field, property_ in node.properties or ():
            child_path = path + (field,)
            child_validation = validation_node.children[field]
            self_ = QTreeWidgetItem([
                field,
                "*" * is_required(node, field),
                display_type(property_),
                get_description(property_),
                display_issues(child_validation),
            ])
            self_.setData(0, Qt.ItemDataRole.UserRole, child_path)
            parent.addChild(self_)
            schema_to_tree(self_, property_, child_path, child_validation)

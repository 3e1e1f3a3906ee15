from messages import DE, EN, format_message, lookup, message_table_for
from schema_model import PERMISSIVE, RESTRICTIVE, TypedNode
from validation import (
    ValidationError, ValidationResult, ValidationTreeMemo, build_validation_tree,
    collect_errors, validate_node,
)


def tokens(result):
    return [error.path for error in result.errors]


def test_string_length_range_is_reported_on_the_property():
    """A conflict shows up on its node and is counted by every ancestor."""
    root = TypedNode(kind="object", properties=(
        ("code", TypedNode(kind="string", min_length=10, max_length=5)),
        ("ok", TypedNode(kind="string")),
    ))
    tree = build_validation_tree(root, EN)
    assert tree.own_validation.valid
    assert tree.cumulative_children_errors >= 1
    code = tree.children["code"]
    assert tokens(code.own_validation) == ["lengthRange"]
    assert code.own_validation.errors[0].message == \
        "Minimum length (10) is greater than maximum length (5)."
    assert tree.children["ok"].own_validation.valid


def test_cumulative_count_spans_nested_levels():
    inner = TypedNode(kind="object", properties=(
        ("n", TypedNode(kind="number", minimum=5, maximum=1, multiple_of=0)),
    ))
    root = TypedNode(kind="object", properties=(("inner", inner),))
    tree = build_validation_tree(root, EN)
    assert tree.children["inner"].cumulative_children_errors == 2
    assert tree.cumulative_children_errors == 2


def test_array_items_get_their_own_child():
    root = TypedNode(kind="array", min_items=3, max_items=1,
                     items=TypedNode(kind="string", min_length=-1))
    tree = build_validation_tree(root, EN)
    assert tokens(tree.own_validation) == ["itemsRange"]
    assert tokens(tree.children["items"].own_validation) == ["negativeLength"]
    assert tree.cumulative_children_errors == 1


def test_invalid_pattern():
    result = validate_node(TypedNode(kind="string", pattern="(unclosed"), EN)
    assert tokens(result) == ["patternInvalid"]
    assert result.errors[0].message.startswith("Pattern is not a valid regular expression")


def test_enum_against_length():
    assert tokens(validate_node(
        TypedNode(kind="string", enum=("a", "bb"), min_length=3), EN)) == ["enumLengthConflict"]
    assert validate_node(
        TypedNode(kind="string", enum=("a", "bbb"), min_length=3), EN).valid


def test_number_bounds():
    assert tokens(validate_node(
        TypedNode(kind="number", minimum=3, maximum=1), EN)) == ["rangeConflict"]
    assert tokens(validate_node(
        TypedNode(kind="integer", exclusive_minimum=2, maximum=2), EN)) == ["exclusiveRangeConflict"]
    assert validate_node(TypedNode(kind="number", minimum=2, maximum=2), EN).valid
    assert tokens(validate_node(
        TypedNode(kind="number", enum=(1, 2), minimum=5), EN)) == ["enumRangeConflict"]
    assert validate_node(TypedNode(kind="number", enum=(1, 7), minimum=5), EN).valid


def test_constraints_of_other_kinds_are_ignored():
    assert validate_node(TypedNode(kind="boolean", min_length=5, max_length=1), EN).valid
    assert validate_node(PERMISSIVE, EN).valid
    assert validate_node(RESTRICTIVE, EN).valid


def test_messages_follow_the_table():
    node = TypedNode(kind="number", minimum=3, maximum=1)
    assert validate_node(node, DE).errors[0].message == \
        "Das Minimum (3) ist größer als das Maximum (1)."
    assert validate_node(node, lambda token: "custom " + token).errors[0].message == \
        "custom rangeConflict"
    assert validate_node(node, {}).errors[0].message == "rangeConflict"


def test_collect_errors_lists_parents_first():
    root = TypedNode(kind="array", min_items=-1, items=TypedNode(
        kind="object", properties=(("x", TypedNode(kind="string", max_length=-2)),)))
    pairs = collect_errors(build_validation_tree(root, EN))
    assert [(path, error.path) for path, error in pairs] == [
        ((), "negativeItems"),
        (("items", "x"), "negativeLength"),
    ]


def test_memo_reuses_tree_for_same_schema():
    memo = ValidationTreeMemo()
    schema = TypedNode(kind="string", min_length=2, max_length=1)
    first = memo(schema, EN)
    assert memo(schema, EN) is first
    assert memo(schema, DE) is not first
    assert memo(TypedNode(kind="string"), DE).own_validation.valid


def test_result_to_dict():
    result = ValidationResult((ValidationError("/a", "missing", 1, 2),))
    assert not result.valid
    assert result.to_dict() == {
        "valid": False,
        "errors": [{"path": "/a", "message": "missing", "line": 1, "column": 2}],
    }
    assert ValidationResult().to_dict() == {"valid": True, "errors": []}


def test_message_helpers():
    assert message_table_for("de") is DE
    assert message_table_for("fr") is EN
    assert format_message("{minimum} > {maximum} {other}", minimum=1, maximum=0) == \
        "1 > 0 {other}"
    assert lookup(EN, "unknownToken") == "unknownToken"

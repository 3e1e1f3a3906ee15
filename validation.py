"""Self-consistency of a schema, independent of any instance data.

``build_validation_tree`` mirrors the schema: object nodes get one child per
declared property, array nodes one child keyed ``"items"``. Each tree node
reports the conflicts among its own declared constraints, and how many
conflicts sit anywhere below it.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from messages import lookup
from schema_editor import ITEMS, items_of, properties_of
from schema_model import BooleanSchema, SchemaNode, TypedNode, effective_kind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationError:
    path: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self):
        result = {"path": self.path, "message": self.message}
        if self.line is not None:
            result["line"] = self.line
        if self.column is not None:
            result["column"] = self.column
        return result


@dataclass(frozen=True)
class ValidationResult:
    errors: Tuple[ValidationError, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self):
        return {"valid": self.valid, "errors": [e.to_dict() for e in self.errors]}


@dataclass(frozen=True)
class ValidationTreeNode:
    own_validation: ValidationResult
    children: Dict[str, "ValidationTreeNode"] = field(default_factory=dict)
    cumulative_children_errors: int = 0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _both_numbers(a, b) -> bool:
    return _is_number(a) and _is_number(b)


def _check_string(node: TypedNode, report):
    lo, hi = node.min_length, node.max_length
    if any(_is_number(v) and v < 0 for v in (lo, hi)):
        report("negativeLength")
    if _both_numbers(lo, hi) and lo > hi:
        report("lengthRange", minimum=lo, maximum=hi)
    if node.pattern is not None:
        try:
            re.compile(node.pattern)
        except re.error as e:
            report("patternInvalid", error=e)
    if node.enum and (_is_number(lo) or _is_number(hi)):
        def fits(value):
            if not isinstance(value, str):
                return False
            if _is_number(lo) and len(value) < lo:
                return False
            if _is_number(hi) and len(value) > hi:
                return False
            return True
        if not any(fits(v) for v in node.enum):
            report("enumLengthConflict")


def _lower_bound(node: TypedNode):
    bound = None
    if _is_number(node.minimum):
        bound = (node.minimum, False)
    if _is_number(node.exclusive_minimum) and (
            bound is None or node.exclusive_minimum >= bound[0]):
        bound = (node.exclusive_minimum, True)
    return bound


def _upper_bound(node: TypedNode):
    bound = None
    if _is_number(node.maximum):
        bound = (node.maximum, False)
    if _is_number(node.exclusive_maximum) and (
            bound is None or node.exclusive_maximum <= bound[0]):
        bound = (node.exclusive_maximum, True)
    return bound


def _in_range(value, lower, upper) -> bool:
    if lower is not None:
        if value < lower[0] or (lower[1] and value == lower[0]):
            return False
    if upper is not None:
        if value > upper[0] or (upper[1] and value == upper[0]):
            return False
    return True


def _check_number(node: TypedNode, report):
    lower, upper = _lower_bound(node), _upper_bound(node)
    if _both_numbers(node.minimum, node.maximum) and node.minimum > node.maximum:
        report("rangeConflict", minimum=node.minimum, maximum=node.maximum)
    elif lower is not None and upper is not None and (
            lower[0] > upper[0]
            or (lower[0] == upper[0] and (lower[1] or upper[1]))):
        report("exclusiveRangeConflict")
    if _is_number(node.multiple_of) and node.multiple_of <= 0:
        report("multipleOfNotPositive")
    if node.enum and (lower is not None or upper is not None):
        if not any(_is_number(v) and _in_range(v, lower, upper) for v in node.enum):
            report("enumRangeConflict")


def _check_array(node: TypedNode, report):
    lo, hi = node.min_items, node.max_items
    if any(_is_number(v) and v < 0 for v in (lo, hi)):
        report("negativeItems")
    if _both_numbers(lo, hi) and lo > hi:
        report("itemsRange", minimum=lo, maximum=hi)


_CHECKS = {
    "string": _check_string,
    "number": _check_number,
    "integer": _check_number,
    "array": _check_array,
}


def validate_node(schema: SchemaNode, message_table) -> ValidationResult:
    """Conflicts among the constraints declared on this node alone."""
    if isinstance(schema, BooleanSchema):
        return ValidationResult()
    errors = []

    def report(token, **params):
        errors.append(ValidationError(token, lookup(message_table, token, **params)))

    check = _CHECKS.get(schema.kind)
    if check is not None:
        check(schema, report)
    return ValidationResult(tuple(errors))


def build_validation_tree(schema: SchemaNode, message_table) -> ValidationTreeNode:
    children = {}
    kind = effective_kind(schema)
    if kind == "object":
        for entry in properties_of(schema):
            children[entry.name] = build_validation_tree(entry.schema, message_table)
    elif kind == "array":
        children[ITEMS] = build_validation_tree(items_of(schema), message_table)
    cumulative = sum(
        len(child.own_validation.errors) + child.cumulative_children_errors
        for child in children.values()
    )
    return ValidationTreeNode(validate_node(schema, message_table), children, cumulative)


def collect_errors(node: ValidationTreeNode, path=()):
    """Flatten a tree into ``(path, error)`` pairs, parents before children."""
    result = [(path, error) for error in node.own_validation.errors]
    for key, child in node.children.items():
        result.extend(collect_errors(child, path + (key,)))
    return result


class ValidationTreeMemo:
    """Remembers the tree of the last (schema, message table) pair by identity."""

    def __init__(self):
        self._key = None
        self._tree = None

    def __call__(self, schema: SchemaNode, message_table) -> ValidationTreeNode:
        key = (schema, message_table)
        if self._key is not None and self._key[0] is schema and self._key[1] is message_table:
            return self._tree
        self._tree = build_validation_tree(schema, message_table)
        self._key = key
        logger.debug("Validation tree rebuilt, %d conflict(s) below the root.",
                     self._tree.cumulative_children_errors)
        return self._tree

import logging
import re
from dataclasses import replace
from typing import Any, List

from schema_model import DRAFT_07, PERMISSIVE, SchemaNode, TypedNode, with_extra

logger = logging.getLogger(__name__)

_FORMATS = (
    ("date-time", re.compile(
        r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})?$")),
    ("date", re.compile(r"^\d{4}-\d{2}-\d{2}$")),
    ("time", re.compile(r"^\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})?$")),
    ("email", re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")),
    ("uuid", re.compile(
        r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")),
    ("uri", re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://\S+$")),
)


def json_kind(value) -> str:
    # bool is a subclass of int, test it first
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    raise TypeError(f"{type(value).__name__} is not a JSON value.")


def detect_format(value: str):
    for name, pattern in _FORMATS:
        if pattern.match(value):
            return name
    return None


def _infer_samples(samples: List[Any]) -> SchemaNode:
    """One schema covering every sample; disagreeing samples give ``true``."""
    if not samples:
        return PERMISSIVE
    kinds = {json_kind(v) for v in samples}
    if len(kinds) > 1:
        logger.debug("Samples disagree in kind (%s), leaving them unconstrained.",
                     ", ".join(sorted(kinds)))
        return PERMISSIVE
    kind = kinds.pop()

    if kind == "object":
        members = {}
        for sample in samples:
            for key, value in sample.items():
                members.setdefault(key, []).append(value)
        properties = tuple(
            (key, _infer_samples(values)) for key, values in members.items()
        )
        required = tuple(
            key for key in members if all(key in sample for sample in samples)
        )
        return TypedNode(kind="object", properties=properties, required=required)
    if kind == "array":
        pooled = [element for sample in samples for element in sample]
        return TypedNode(kind="array", items=_infer_samples(pooled))
    if kind == "string":
        formats = {detect_format(v) for v in samples}
        format_ = formats.pop() if len(formats) == 1 else None
        return TypedNode(kind="string", format=format_)
    return TypedNode(kind=kind)


def infer_schema(value) -> SchemaNode:
    """Schema describing one parsed JSON value.

    Every member of an object is required, since a single sample cannot show
    which ones are optional. Array items are merged across all elements.

    Recursion follows the nesting of ``value``, so a document nested deeper
    than the interpreter's recursion limit allows raises ``RecursionError``.
    """
    return _infer_samples([value])


def create_schema_from_json(value) -> SchemaNode:
    schema = infer_schema(value)
    if not isinstance(schema, TypedNode):
        return schema
    schema = replace(
        schema, title="Generated Schema", description="Generated from JSON data")
    return with_extra(schema, "$schema", DRAFT_07)

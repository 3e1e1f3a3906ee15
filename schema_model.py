import enum
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Tuple, Union

DRAFT_07 = "http://json-schema.org/draft-07/schema#"
SCHEMA_TYPES = ("string", "number", "integer", "boolean", "object", "array", "null")
SCALAR_TYPES = ("string", "number", "integer", "boolean", "null")


class BooleanSchema(enum.Enum):
    PERMISSIVE = True
    RESTRICTIVE = False


PERMISSIVE = BooleanSchema.PERMISSIVE
RESTRICTIVE = BooleanSchema.RESTRICTIVE


@dataclass(frozen=True)
class TypedNode:
    """Object form of a schema node.

    ``None`` means the keyword is absent. ``properties`` is an ordered tuple of
    ``(name, node)`` pairs; its order is the visual order of the editor.
    ``required`` keeps the order names were marked required in.
    """
    kind: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[tuple] = None
    # string
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    format: Optional[str] = None
    # number, integer
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[float] = None
    exclusive_maximum: Optional[float] = None
    multiple_of: Optional[float] = None
    # array
    items: Optional["SchemaNode"] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: Optional[bool] = None
    # object
    properties: Optional[Tuple[Tuple[str, "SchemaNode"], ...]] = None
    required: Optional[Tuple[str, ...]] = None
    additional_properties: Optional[bool] = None
    # keywords this model does not interpret, kept for the round trip
    extras: Tuple[Tuple[str, Any], ...] = ()


SchemaNode = Union[BooleanSchema, TypedNode]

STRING_CONSTRAINTS = ("min_length", "max_length", "pattern", "format")
NUMBER_CONSTRAINTS = (
    "minimum", "maximum", "exclusive_minimum", "exclusive_maximum", "multiple_of"
)
ARRAY_CONSTRAINTS = ("items", "min_items", "max_items", "unique_items")
OBJECT_CONSTRAINTS = ("properties", "required", "additional_properties")
CONSTRAINTS_BY_KIND = {
    "string": STRING_CONSTRAINTS,
    "number": NUMBER_CONSTRAINTS,
    "integer": NUMBER_CONSTRAINTS,
    "array": ARRAY_CONSTRAINTS,
    "object": OBJECT_CONSTRAINTS,
}

# attribute name -> JSON Schema keyword, in output order
_SCALAR_KEYWORDS = (
    ("title", "title"),
    ("description", "description"),
    ("enum", "enum"),
    ("min_length", "minLength"),
    ("max_length", "maxLength"),
    ("pattern", "pattern"),
    ("format", "format"),
    ("minimum", "minimum"),
    ("maximum", "maximum"),
    ("exclusive_minimum", "exclusiveMinimum"),
    ("exclusive_maximum", "exclusiveMaximum"),
    ("multiple_of", "multipleOf"),
    ("min_items", "minItems"),
    ("max_items", "maxItems"),
    ("unique_items", "uniqueItems"),
)
_MODELLED_KEYWORDS = {keyword for _, keyword in _SCALAR_KEYWORDS} | {
    "type", "items", "properties", "required", "additionalProperties"
}


def is_permissive(node) -> bool:
    return node is PERMISSIVE


def is_restrictive(node) -> bool:
    return node is RESTRICTIVE


def is_boolean_schema(node) -> bool:
    return isinstance(node, BooleanSchema)


def as_typed_node(node: SchemaNode) -> TypedNode:
    """Typed stand-in of a node for editing.

    ``true`` becomes ``{}``. ``false`` becomes ``{"enum": []}``, which still
    rejects every instance.
    """
    if node is PERMISSIVE:
        return TypedNode()
    if node is RESTRICTIVE:
        return TypedNode(enum=())
    return node


def with_typed(node: SchemaNode, fn: Callable[[TypedNode], Any], default=None):
    if isinstance(node, BooleanSchema):
        return default
    return fn(node)


def effective_kind(node: SchemaNode) -> str:
    """Kind the editor shows for a node; an absent ``type`` reads as object."""
    return with_typed(node, lambda s: s.kind or "object", "object")


def get_description(node: SchemaNode) -> str:
    return with_typed(node, lambda s: s.description or "", "")


def get_property(node: SchemaNode, name: str) -> Optional[SchemaNode]:
    for key, child in with_typed(node, lambda s: s.properties or (), ()):
        if key == name:
            return child
    return None


def is_required(node: SchemaNode, name: str) -> bool:
    return name in with_typed(node, lambda s: s.required or (), ())


def new_schema() -> TypedNode:
    return TypedNode(
        kind="object",
        properties=(),
        required=(),
        extras=(("$schema", DRAFT_07),),
    )


def with_extra(node: TypedNode, key: str, value) -> TypedNode:
    extras = tuple((k, v) for k, v in node.extras if k != key)
    return replace(node, extras=((key, value),) + extras)


def from_json(document) -> SchemaNode:
    """Build a schema node from a JSON Schema document (dict or bool)."""
    if document is True:
        return PERMISSIVE
    if document is False:
        return RESTRICTIVE
    if not isinstance(document, dict):
        raise ValueError(
            f"JSON schema is invalid: \"{document!r}\" is not an object or boolean.")
    values = {}
    type_ = document.get("type")
    if isinstance(type_, list):
        # One kind per node; the first entry wins.
        type_ = type_[0] if type_ else None
    if type_ is not None and type_ not in SCHEMA_TYPES:
        raise ValueError(f"JSON schema is invalid: field type \"{type_}\" is invalid.")
    values["kind"] = type_
    for attr, keyword in _SCALAR_KEYWORDS:
        if keyword in document:
            values[attr] = document[keyword]
    if values.get("enum") is not None:
        if not isinstance(values["enum"], list):
            raise ValueError("JSON schema is invalid: \"enum\" is not an array.")
        values["enum"] = tuple(values["enum"])
    extras = [(k, v) for k, v in document.items() if k not in _MODELLED_KEYWORDS]

    items = document.get("items")
    if isinstance(items, (dict, bool)):
        values["items"] = from_json(items)
    elif items is not None:
        # tuple validation is not modelled
        extras.append(("items", items))
    if "properties" in document:
        if not isinstance(document["properties"], dict):
            raise ValueError("JSON schema is invalid: \"properties\" is not an object.")
        values["properties"] = tuple(
            (name, from_json(child))
            for name, child in document["properties"].items()
        )
    if "required" in document:
        required = document["required"]
        if not isinstance(required, list) or not all(isinstance(k, str) for k in required):
            raise ValueError(
                "JSON schema is invalid: \"required\" is not an array of strings.")
        values["required"] = tuple(dict.fromkeys(required))
    additional = document.get("additionalProperties")
    if isinstance(additional, bool):
        values["additional_properties"] = additional
    elif additional is not None:
        extras.append(("additionalProperties", additional))
    values["extras"] = tuple(extras)
    return TypedNode(**values)


def to_json(node: SchemaNode):
    """Serialize a schema node to a JSON Schema document."""
    if isinstance(node, BooleanSchema):
        return node.value
    document = {}
    for key, value in node.extras:
        if key.startswith("$"):
            document[key] = value
    if node.kind is not None:
        document["type"] = node.kind
    for attr, keyword in _SCALAR_KEYWORDS:
        value = getattr(node, attr)
        if value is not None:
            document[keyword] = list(value) if attr == "enum" else value
    if node.items is not None:
        document["items"] = to_json(node.items)
    if node.properties is not None:
        document["properties"] = {
            name: to_json(child) for name, child in node.properties
        }
    if node.required is not None:
        document["required"] = list(node.required)
    if node.additional_properties is not None:
        document["additionalProperties"] = node.additional_properties
    for key, value in node.extras:
        if not key.startswith("$"):
            document.setdefault(key, value)
    return document

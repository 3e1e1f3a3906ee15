"""Order-preserving edits over object and array schema nodes.

Every function returns a new node and leaves its input untouched. When an edit
has nothing to do, the input node itself is returned, so callers can compare
with ``is`` to find out whether anything changed.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

from schema_model import (
    BooleanSchema, CONSTRAINTS_BY_KIND, PERMISSIVE, SchemaNode, TypedNode,
    as_typed_node, with_typed,
)

logger = logging.getLogger(__name__)

ITEMS = "items"


@dataclass(frozen=True)
class PropertyEntry:
    name: str
    schema: SchemaNode
    required: bool
    position: int


@dataclass(frozen=True)
class FieldDraft:
    """Input of the add/edit field form; never stored in a schema."""
    name: str
    kind: str = "string"
    description: str = ""
    required: bool = False
    validation: SchemaNode = PERMISSIVE


def _as_object(parent: SchemaNode) -> Optional[TypedNode]:
    # Boolean and untyped parents are promoted to object nodes. Other kinds
    # cannot hold properties.
    node = as_typed_node(parent)
    if node.kind is None:
        node = replace(node, kind="object")
    elif node.kind != "object":
        return None
    if node.properties is None:
        node = replace(node, properties=())
    return node


def _as_array(parent: SchemaNode) -> Optional[TypedNode]:
    node = as_typed_node(parent)
    if node.kind is None:
        return replace(node, kind="array")
    if node.kind != "array":
        return None
    return node


def _has_children(node: SchemaNode) -> bool:
    return with_typed(node, lambda s: s.kind in (None, "object"), False)


def properties_of(node: SchemaNode) -> List[PropertyEntry]:
    if not _has_children(node):
        return []
    required = set(node.required or ())
    return [
        PropertyEntry(name, schema, name in required, position)
        for position, (name, schema) in enumerate(node.properties or ())
    ]


def property_names(node: SchemaNode) -> List[str]:
    return [entry.name for entry in properties_of(node)]


def field_schema_of(draft: FieldDraft) -> TypedNode:
    """Build the schema of a property from a form draft.

    Only the constraints that belong to ``draft.kind`` (plus ``enum`` and
    ``title``) are taken over from ``draft.validation``.
    """
    values = {"kind": draft.kind}
    source = draft.validation
    if isinstance(source, TypedNode):
        for attr in CONSTRAINTS_BY_KIND.get(draft.kind, ()) + ("enum", "title"):
            value = getattr(source, attr)
            if value is not None:
                values[attr] = value
    if draft.description:
        values["description"] = draft.description
    return TypedNode(**values)


def set_property(parent: SchemaNode, name: str, schema: SchemaNode) -> SchemaNode:
    node = _as_object(parent)
    if node is None:
        logger.debug("Cannot set property %r on a non-object node.", name)
        return parent
    properties = list(node.properties)
    for i, (key, current) in enumerate(properties):
        if key == name:
            if current == schema and node is parent:
                return parent
            properties[i] = (name, schema)
            break
    else:
        properties.append((name, schema))
    return replace(node, properties=tuple(properties))


def rename_property(parent: SchemaNode, old_name: str, new_name: str,
                    schema: SchemaNode) -> SchemaNode:
    """Rename a property in place; it keeps both its position and requiredness."""
    if old_name == new_name:
        return set_property(parent, new_name, schema)
    node = _as_object(parent)
    if node is None:
        return parent
    names = [key for key, _ in node.properties]
    if old_name not in names or new_name in names:
        logger.debug("Rename %r -> %r skipped.", old_name, new_name)
        return parent
    properties = tuple(
        (new_name, schema) if key == old_name else (key, child)
        for key, child in node.properties
    )
    required = node.required
    if required is not None:
        required = tuple(new_name if key == old_name else key for key in required)
    return replace(node, properties=properties, required=required)


def remove_property(parent: SchemaNode, name: str) -> SchemaNode:
    if not _has_children(parent):
        return parent
    properties = parent.properties or ()
    required = parent.required or ()
    if all(key != name for key, _ in properties) and name not in required:
        return parent
    changes = {"properties": tuple(p for p in properties if p[0] != name)}
    if parent.required is not None:
        changes["required"] = tuple(key for key in required if key != name)
    return replace(parent, **changes)


def set_required(parent: SchemaNode, name: str, required: bool) -> SchemaNode:
    if not _has_children(parent):
        return parent
    if all(key != name for key, _ in parent.properties or ()):
        return parent
    current = parent.required or ()
    if required == (name in current):
        return parent
    if required:
        return replace(parent, required=current + (name,))
    return replace(parent, required=tuple(key for key in current if key != name))


def reorder_property(parent: SchemaNode, from_index: int, to_index: int) -> SchemaNode:
    """Move one property; the ones in between shift by one slot."""
    if not _has_children(parent) or from_index == to_index:
        return parent
    properties = list(parent.properties or ())
    size = len(properties)
    if not (0 <= from_index < size and 0 <= to_index < size):
        logger.debug("Reorder %d -> %d out of range (%d).", from_index, to_index, size)
        return parent
    properties.insert(to_index, properties.pop(from_index))
    return replace(parent, properties=tuple(properties))


def items_of(node: SchemaNode) -> SchemaNode:
    return with_typed(node, lambda s: s.items, None) or TypedNode(kind="string")


def set_items(parent: SchemaNode, schema: SchemaNode) -> SchemaNode:
    node = _as_array(parent)
    if node is None:
        return parent
    if node.items == schema and node is parent:
        return parent
    return replace(node, items=schema)


def add_field(parent: SchemaNode, draft: FieldDraft) -> SchemaNode:
    node = set_property(parent, draft.name, field_schema_of(draft))
    if draft.required:
        node = set_required(node, draft.name, True)
    return node


def update_field(parent: SchemaNode, old_name: str, draft: FieldDraft) -> SchemaNode:
    """Apply an edited draft to the property currently named ``old_name``."""
    schema = field_schema_of(draft)
    if old_name != draft.name:
        node = rename_property(parent, old_name, draft.name, schema)
    else:
        node = set_property(parent, old_name, schema)
    return set_required(node, draft.name, draft.required)


def unique_field_name(parent: SchemaNode, base: str = "newField") -> str:
    names = set(property_names(parent))
    name = base
    counter = 1
    while name in names:
        name = f"{base}{counter}"
        counter += 1
    return name


def node_at(root: SchemaNode, path: Sequence[str]) -> Optional[SchemaNode]:
    """Nested node addressed by property names, or ``"items"`` under arrays."""
    node = root
    for key in path:
        if isinstance(node, BooleanSchema):
            return None
        if node.kind == "array":
            if key != ITEMS:
                return None
            node = items_of(node)
            continue
        node = dict(node.properties or ()).get(key) if _has_children(node) else None
        if node is None:
            return None
    return node


def update_at(root: SchemaNode, path: Sequence[str],
              fn: Callable[[SchemaNode], SchemaNode]) -> SchemaNode:
    """Replace the node at ``path`` with ``fn(node)``, copying only its ancestors."""
    if not path:
        return fn(root)
    key, rest = path[0], path[1:]
    if isinstance(root, BooleanSchema):
        return root
    if root.kind == "array":
        if key != ITEMS:
            return root
        return set_items(root, update_at(items_of(root), rest, fn))
    child = dict(root.properties or ()).get(key) if _has_children(root) else None
    if child is None:
        return root
    updated = update_at(child, rest, fn)
    if updated is child:
        return root
    return set_property(root, key, updated)

"""Wire Schema Emission — RuleTree -> JSON-Schema document.

Invariants:
    - Total over well-formed trees: every PrimitiveType has exactly one wire shape
    - additionalProperties on every object node comes from the single allow_unknown argument
    - "required" is omitted (not []) when no child is required
    - enum lists are copied, order preserved; patterns are emitted as source text
    - Output dicts are fresh: callers may cache them without aliasing rule state

Design Decisions:
    - Dispatch table keyed by PrimitiveType instead of an if-chain: a new member
      without an emitter fails loudly in tests (KeyError), not silently as {}
    - date bounds (epoch ms) are not emitted: JSON Schema has no standard
      keyword for date-time ranges
"""

from collections.abc import Callable, Mapping
from copy import deepcopy
from typing import Any

from dtoforge.core.rule_types import Overrides, PrimitiveType, Rule, RuleTree

OBJECT_ID_PATTERN: str = "^[0-9a-fA-F]{24}$"


def to_wire_schema(rule_tree: RuleTree, allow_unknown: bool = False) -> dict[str, Any]:
    """Convert an (effective) RuleTree into a JSON-Schema object document."""
    root = Rule(type=PrimitiveType.OBJECT, children=rule_tree.children)
    return _node_to_schema(root, bool(allow_unknown))


def _node_to_schema(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    schema = _EMITTERS[node.type](node, allow_unknown)
    if node.has_default:
        schema["default"] = deepcopy(node.default)
    return schema


def _object(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []
    for name, child in (node.children or {}).items():
        properties[name] = _node_to_schema(child, allow_unknown)
        if child.required:
            required.append(name)
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    schema["additionalProperties"] = allow_unknown
    return schema


def _array(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    items = _node_to_schema(node.items, allow_unknown) if node.items is not None else {}
    schema: dict[str, Any] = {"type": "array", "items": items}
    if node.min_items is not None:
        schema["minItems"] = node.min_items
    if node.max_items is not None:
        schema["maxItems"] = node.max_items
    return schema


def _string(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "string"}
    if node.min_length is not None:
        schema["minLength"] = node.min_length
    if node.max_length is not None:
        schema["maxLength"] = node.max_length
    if node.pattern:
        schema["pattern"] = node.pattern
    if node.enum:
        schema["enum"] = list(node.enum)
    return schema


def _number(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "number"}
    if node.min is not None:
        schema["minimum"] = node.min
    if node.max is not None:
        schema["maximum"] = node.max
    return schema


def _boolean(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    return {"type": "boolean"}


def _date(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    return {"type": "string", "format": "date-time"}


def _object_id(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    return {"type": "string", "pattern": OBJECT_ID_PATTERN}


def _unconstrained(node: Rule, allow_unknown: bool) -> dict[str, Any]:
    return {}


_EMITTERS: dict[PrimitiveType, Callable[[Rule, bool], dict[str, Any]]] = {
    PrimitiveType.OBJECT: _object,
    PrimitiveType.ARRAY: _array,
    PrimitiveType.STRING: _string,
    PrimitiveType.NUMBER: _number,
    PrimitiveType.BOOLEAN: _boolean,
    PrimitiveType.DATE: _date,
    PrimitiveType.OBJECT_ID: _object_id,
    PrimitiveType.MIXED: _unconstrained,
    PrimitiveType.BUFFER: _unconstrained,
}


def wire_schema_from_overrides(
    overrides: "Overrides | Mapping[str, Any] | None" = None, allow_unknown: bool = False,
) -> dict[str, Any]:
    """No-schema mode: build the wire schema purely from overrides.

    - append entries become properties (type defaults to string); required only
      when the definition says so
    - include names without a definition default to {"type": "string"}
    - overrides.required is added to, overrides.optional removed from, the required list
    """
    overrides = Overrides.from_value(overrides)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, definition in overrides.append.items():
        if not isinstance(definition, Rule):
            definition = Rule.from_dict({"type": PrimitiveType.STRING.value, **definition})
        properties[name] = _node_to_schema(definition, bool(allow_unknown))
        if definition.required:
            required.append(name)

    for name in overrides.include:
        properties.setdefault(name, {"type": "string"})

    for name in overrides.required:
        if name not in required:
            required.append(name)
    required = [name for name in required if name not in set(overrides.optional)]

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    schema["additionalProperties"] = bool(allow_unknown)
    return schema

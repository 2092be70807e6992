"""Schema Introspection — walks a schema provider and compiles a RuleTree.

Invariants:
    - Input must expose each_path(fn); anything else raises IntrospectionError
    - map_kind is total: unrecognized kind tags become MIXED
    - Dotted paths materialize intermediate object nodes (set_nested)
    - Sub-schema recursion is bounded by max_depth (SchemaDepthExceededError)
    - Date bounds are stored as epoch milliseconds

Design Decisions:
    - Pure function, no cache: memoization is the registry's job (services/cache_registry)
    - Depth bound instead of cycle detection: schema graphs may legitimately reuse a
      sub-schema in several places, only unbounded nesting is an error
"""

import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from dtoforge.core.errors import ErrorContext, IntrospectionError, SchemaDepthExceededError
from dtoforge.core.rule_types import PrimitiveType, Rule, RuleTree, new_rule_tree, set_nested

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH: int = 32

_KIND_TO_TYPE: dict[str, PrimitiveType] = {
    "String": PrimitiveType.STRING,
    "Number": PrimitiveType.NUMBER,
    "Decimal128": PrimitiveType.NUMBER,
    "Boolean": PrimitiveType.BOOLEAN,
    "Date": PrimitiveType.DATE,
    "ObjectID": PrimitiveType.OBJECT_ID,
    "ObjectId": PrimitiveType.OBJECT_ID,
    "Buffer": PrimitiveType.BUFFER,
    "Array": PrimitiveType.ARRAY,
    "Embedded": PrimitiveType.OBJECT,
}


def map_kind(kind: Any) -> PrimitiveType:
    """External kind tag -> PrimitiveType. Unknown tags map to MIXED."""
    if isinstance(kind, Enum):
        kind = kind.value
    return _KIND_TO_TYPE.get(kind, PrimitiveType.MIXED)


def introspect_schema(schema: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> RuleTree:
    """Compile a RuleTree from a schema exposing each_path(fn).

    Raises:
        IntrospectionError: schema is None or has no callable each_path.
        SchemaDepthExceededError: sub-schemas nest deeper than max_depth.
    """
    return _introspect(schema, max_depth, depth=0, prefix="")


def _introspect(schema: Any, max_depth: int, depth: int, prefix: str) -> RuleTree:
    if depth > max_depth:
        raise SchemaDepthExceededError(max_depth, prefix.rstrip(".") or "<root>")
    each_path = getattr(schema, "each_path", None)
    if schema is None or not callable(each_path):
        raise IntrospectionError(
            "Schema must expose each_path(fn)",
            ErrorContext(schema_name=type(schema).__name__),
        )

    tree = new_rule_tree()

    def visit(path: str, descriptor: Any) -> None:
        rule = _rule_for(descriptor, max_depth, depth, f"{prefix}{path}")
        set_nested(tree, path, rule)

    each_path(visit)
    logger.debug(
        f"Introspected {type(schema).__name__} at depth {depth}",
        extra={"schema": getattr(schema, "name", None), "field_count": len(tree.children)},
    )
    return tree


def _rule_for(descriptor: Any, max_depth: int, depth: int, path: str) -> Rule:
    rule_type = map_kind(getattr(descriptor, "kind", None))
    opts: Mapping[str, Any] = getattr(descriptor, "options", None) or {}
    rule = Rule(type=rule_type, required=bool(opts.get("required")))

    if rule_type is PrimitiveType.STRING:
        _lift_string(rule, opts)
    elif rule_type is PrimitiveType.NUMBER:
        _lift_number(rule, opts)
    elif rule_type is PrimitiveType.DATE:
        if opts.get("min") is not None:
            rule.min = to_epoch_ms(opts["min"])
        if opts.get("max") is not None:
            rule.max = to_epoch_ms(opts["max"])
    elif rule_type is PrimitiveType.ARRAY:
        caster = getattr(descriptor, "caster", None)
        if caster is not None:
            rule.items = _items_for(caster, max_depth, depth, path)
        if opts.get("minItems") is not None:
            rule.min_items = opts["minItems"]
        if opts.get("maxItems") is not None:
            rule.max_items = opts["maxItems"]

    sub_schema = getattr(descriptor, "schema", None)
    if sub_schema is not None:
        rule.type = PrimitiveType.OBJECT
        rule.children = _introspect(sub_schema, max_depth, depth + 1, f"{path}.").children

    default = opts.get("default")
    if "default" in opts and not callable(default):
        rule.default = default
    return rule


def _items_for(caster: Any, max_depth: int, depth: int, path: str) -> Rule:
    item_type = map_kind(getattr(caster, "kind", None))
    c_opts: Mapping[str, Any] = getattr(caster, "options", None) or {}
    items = Rule(type=item_type)
    if item_type is PrimitiveType.STRING:
        _lift_string(items, c_opts)
    elif item_type is PrimitiveType.NUMBER:
        _lift_number(items, c_opts)

    sub_schema = getattr(caster, "schema", None)
    if sub_schema is not None:
        items.type = PrimitiveType.OBJECT
        items.children = _introspect(sub_schema, max_depth, depth + 1, f"{path}.").children
    return items


def _lift_string(rule: Rule, opts: Mapping[str, Any]) -> None:
    enum = opts.get("enum")
    if enum:
        rule.enum = _enum_values(enum)
    match = opts.get("match")
    if match is not None:
        rule.pattern = match if isinstance(match, str) else match.pattern
    if opts.get("minlength") is not None:
        rule.min_length = opts["minlength"]
    if opts.get("maxlength") is not None:
        rule.max_length = opts["maxlength"]


def _lift_number(rule: Rule, opts: Mapping[str, Any]) -> None:
    if opts.get("min") is not None:
        rule.min = opts["min"]
    if opts.get("max") is not None:
        rule.max = opts["max"]


def _enum_values(enum: Any) -> list[Any] | None:
    if isinstance(enum, type) and issubclass(enum, Enum):
        return [member.value for member in enum]
    if isinstance(enum, (list, tuple)):
        return list(enum)
    return None


def to_epoch_ms(value: Any) -> float:
    """datetime / date / ISO string / number -> epoch milliseconds (naive = UTC)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)

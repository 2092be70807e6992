"""Validator Compiler — the cached schema -> wire schema -> validator pipeline.

Invariants:
    - compile_rule_tree(s) returns the SAME object for the same schema reference
    - Each stage is cache-checked independently: validator hit skips everything,
      wire-schema hit skips introspection/overrides/emission
    - schema=None skips introspection and the override engine entirely (no-schema mode)
    - build_validator returns the same callable for the same (schema, OverrideKey)
    - Validators never raise on bad payloads: failures come back as ValidatorResult(ok=False)

Design Decisions:
    - Error normalization lives here, not in the engine adapter: the engine reports
      jsonschema errors, this layer owns the public FieldError shape
    - Registry injectable on every call (defaults to the process registry)
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from dtoforge.config import get_settings
from dtoforge.core.apply_overrides import apply_overrides
from dtoforge.core.emit_wire_schema import to_wire_schema, wire_schema_from_overrides
from dtoforge.core.introspect_schema import introspect_schema
from dtoforge.core.rule_types import Overrides, RuleTree, ValidatorOptions
from dtoforge.infrastructure.jsonschema_engine import CompiledSchema, compile_wire_schema
from dtoforge.schemas.validation_result import FieldError, ValidatorResult
from dtoforge.services.cache_registry import CacheRegistry, get_registry, make_override_key

logger = logging.getLogger(__name__)

Validator = Callable[[Any], ValidatorResult]

OverridesInput = Overrides | Mapping[str, Any] | None
OptionsInput = ValidatorOptions | Mapping[str, Any] | None


def compile_rule_tree(schema: Any, registry: CacheRegistry | None = None) -> RuleTree:
    """Introspect `schema` once; later calls with the same reference hit the cache."""
    registry = registry or get_registry()
    max_depth = get_settings().max_schema_depth
    return registry.get_or_set_rule_tree(
        schema, lambda s: introspect_schema(s, max_depth=max_depth),
    )


def emit_wire_schema(
    schema: Any,
    overrides: OverridesInput = None,
    options: OptionsInput = None,
    registry: CacheRegistry | None = None,
) -> dict[str, Any]:
    """Cached wire schema for schema + overrides + options."""
    registry = registry or get_registry()
    overrides = Overrides.from_value(overrides)
    options = ValidatorOptions.from_value(options)
    key = make_override_key(overrides, options)

    cache = registry.wire_schema_cache(schema)
    wire = cache.get(key)
    if wire is not None:
        logger.debug("Wire schema cache hit", extra={"cache": "wire_schema", "override_key": key})
        return wire

    logger.debug("Wire schema cache miss", extra={"cache": "wire_schema", "override_key": key})
    if schema is None:
        wire = wire_schema_from_overrides(overrides, options.allow_unknown)
    else:
        tree = compile_rule_tree(schema, registry)
        wire = to_wire_schema(apply_overrides(tree, overrides), options.allow_unknown)
    cache[key] = wire
    return wire


def build_validator(
    schema: Any,
    overrides: OverridesInput = None,
    options: OptionsInput = None,
    registry: CacheRegistry | None = None,
) -> Validator:
    """Cached validator: payload -> ValidatorResult.

    >>> validate = build_validator(None, {"append": {"y": {"type": "number"}}})
    >>> validate({"y": 5}).ok
    True
    """
    registry = registry or get_registry()
    overrides = Overrides.from_value(overrides)
    options = ValidatorOptions.from_value(options)
    key = make_override_key(overrides, options)

    cache = registry.validator_cache(schema)
    validate = cache.get(key)
    if validate is not None:
        logger.debug("Validator cache hit", extra={"cache": "validator", "override_key": key})
        return validate

    logger.debug("Validator cache miss", extra={"cache": "validator", "override_key": key})
    wire = emit_wire_schema(schema, overrides, options, registry)
    compiled = compile_wire_schema(
        wire, coerce_types=options.coerce_types, allow_unknown=options.allow_unknown,
    )
    validate = _make_validator(compiled)
    cache[key] = validate
    return validate


def _make_validator(compiled: CompiledSchema) -> Validator:
    def validate(payload: Any) -> ValidatorResult:
        data, errors = compiled.check(payload)
        if errors:
            return ValidatorResult(
                ok=False, data=None, errors=[normalize_error(e) for e in errors],
            )
        return ValidatorResult(ok=True, data=data, errors=[])

    return validate


def normalize_error(error: Any) -> FieldError:
    """jsonschema ValidationError -> FieldError(field, error, message)."""
    field = ".".join(str(part) for part in error.absolute_path)
    return FieldError(field=field, error=str(error.validator), message=error.message)

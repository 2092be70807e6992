"""JSON Schema Engine — compiles wire schemas into checkers backed by `jsonschema`.

Invariants:
    - Every failure is collected (iter_errors), never fail-fast
    - check() never mutates the payload it is given; preparation works on a copy
    - Preparation order per object: strip unknown keys -> fill defaults -> recurse;
      scalars are coerced before their own type is checked
    - A missing required property is reported AT the property (path ends with its name)
    - Schemas are checked against the Draft 7 metaschema at compile time (bad regex -> WireSchemaError)

Design Decisions:
    - Draft7Validator extended only for "required": the stock keyword reports the error at
      the parent object, the location is needed to name the missing field
    - Strip/default/coerce as a separate pass over a copy instead of mutating keyword hooks:
      validation stays a pure read of the prepared payload
    - FORMAT_CHECKER enabled so "date-time" is actually enforced (needs rfc3339-validator)
"""

import logging
import re
from copy import deepcopy
from typing import Any

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import SchemaError, ValidationError

from dtoforge.core.errors import ErrorContext, WireSchemaError

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?$")


def _required(validator, required, instance, schema):
    if not validator.is_type(instance, "object"):
        return
    for prop in required:
        if prop not in instance:
            yield ValidationError(f"{prop!r} is a required property", path=(prop,))


_Validator = validators.extend(Draft7Validator, validators={"required": _required})


class CompiledSchema:
    """A wire schema bound to engine options. Call check() per payload."""

    def __init__(self, schema: dict[str, Any], coerce_types: bool, allow_unknown: bool):
        self.schema = schema
        self.coerce_types = coerce_types
        self.allow_unknown = allow_unknown
        self._validator = _Validator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)

    def check(self, payload: Any) -> tuple[Any, list[ValidationError]]:
        """Return (prepared_payload, errors). errors == [] means valid."""
        prepared = self._prepare(self.schema, payload)
        errors = list(self._validator.iter_errors(prepared))
        return prepared, errors

    def _prepare(self, schema: Any, value: Any) -> Any:
        if not isinstance(schema, dict):
            return deepcopy(value)
        target = schema.get("type")
        if self.coerce_types and isinstance(target, str):
            value = coerce_scalar(value, target)

        if target == "object" and isinstance(value, dict):
            properties = schema.get("properties") or {}
            out: dict[str, Any] = {}
            for key, item in value.items():
                if key in properties:
                    out[key] = self._prepare(properties[key], item)
                elif self.allow_unknown:
                    out[key] = deepcopy(item)
            for key, sub in properties.items():
                if key not in out and isinstance(sub, dict) and "default" in sub:
                    out[key] = deepcopy(sub["default"])
            return out

        if target == "array" and isinstance(value, list):
            items = schema.get("items") or {}
            return [self._prepare(items, item) for item in value]

        return deepcopy(value)


def compile_wire_schema(
    schema: dict[str, Any], coerce_types: bool = False, allow_unknown: bool = False,
) -> CompiledSchema:
    """Check `schema` against the metaschema and bind it to options.

    Raises:
        WireSchemaError: the schema is not a valid Draft 7 document.
    """
    try:
        _Validator.check_schema(schema)
    except SchemaError as exc:
        logger.warning(
            f"Wire schema rejected: {exc.message}",
            extra={"error_code": "INVALID_WIRE_SCHEMA",
                   "path": ".".join(str(p) for p in exc.absolute_path)},
        )
        raise WireSchemaError(
            exc.message,
            ErrorContext(path="/".join(str(p) for p in exc.absolute_path) or None),
        ) from exc
    return CompiledSchema(schema, bool(coerce_types), bool(allow_unknown))


# ─── Type coercion ─────────────────────────────────────────────

def _is_type(value: Any, target: str) -> bool:
    if target == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if target == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if target == "string":
        return isinstance(value, str)
    if target == "boolean":
        return isinstance(value, bool)
    if target == "null":
        return value is None
    if target == "object":
        return isinstance(value, dict)
    if target == "array":
        return isinstance(value, list)
    return True


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_scalar(value: Any, target: str) -> Any:
    """Coerce a scalar towards `target`; values that cannot be coerced are returned as-is."""
    if _is_type(value, target):
        return value

    if target in ("number", "integer"):
        if isinstance(value, bool):
            return int(value)
        if value is None:
            return 0
        if isinstance(value, str):
            text = value.strip()
            if _INT_RE.match(text):
                return int(text)
            if target == "number" and _FLOAT_RE.match(text):
                return float(text)
        if target == "integer" and isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    if target == "string":
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return _format_number(value)
        return value

    if target == "boolean":
        if value is None:
            return False
        if value == "true":
            return True
        if value == "false":
            return False
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)
        return value

    if target == "null":
        if value == "" or (isinstance(value, (int, float)) and value == 0):
            return None
        return value

    return value

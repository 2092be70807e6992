"""Validated Body — FastAPI adapters around compiled validators.

Invariants:
    - The validator is built once, when the dependency is declared (import time),
      so a broken schema fails at startup, not on the first request
    - A failing payload raises PayloadValidationError (400 via register_error_handlers)
    - A body that is not JSON (or not UTF-8) is reported as a root-level "json" error, same envelope
    - The route receives the PREPARED payload (coerced, defaulted, unknown keys stripped)

Design Decisions:
    - Dependency factory over a custom Request class: plain Depends() keeps routes explicit
    - Schema endpoint returns the same cached wire schema the validator was compiled from
"""

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from fastapi import Request

from dtoforge.core.errors import ErrorContext, PayloadValidationError
from dtoforge.core.rule_types import Overrides, ValidatorOptions
from dtoforge.schemas.validation_result import FieldError
from dtoforge.services.cache_registry import CacheRegistry
from dtoforge.services.compile_validator import build_validator, emit_wire_schema

logger = logging.getLogger(__name__)


def validated_body(
    schema: Any,
    overrides: Overrides | Mapping[str, Any] | None = None,
    options: ValidatorOptions | Mapping[str, Any] | None = None,
    registry: CacheRegistry | None = None,
) -> Callable[[Request], Awaitable[Any]]:
    """Build a dependency that returns the validated request body.

    Usage:
        validate_login = validated_body(user_schema, {"include": ["username"]})

        @router.post("/login")
        async def login(body: dict = Depends(validate_login)):
            ...
    """
    validate = build_validator(schema, overrides, options, registry)

    async def dependency(request: Request) -> Any:
        try:
            payload = await request.json()
        except json.JSONDecodeError as exc:
            raise _malformed_body(request, f"Malformed JSON body: {exc.msg}") from exc
        except UnicodeDecodeError as exc:
            raise _malformed_body(request, f"Body is not valid UTF-8: {exc.reason}") from exc

        result = validate(payload)
        if not result.ok:
            logger.info(
                f"Payload rejected on {request.url.path} ({len(result.errors)} error(s))",
                extra={"path": request.url.path},
            )
            raise PayloadValidationError(result.errors, ErrorContext(path=request.url.path))
        return result.data

    return dependency


def _malformed_body(request: Request, message: str) -> PayloadValidationError:
    return PayloadValidationError(
        [FieldError(field="", error="json", message=message)],
        ErrorContext(path=request.url.path),
    )


def wire_schema_endpoint(
    schema: Any,
    overrides: Overrides | Mapping[str, Any] | None = None,
    options: ValidatorOptions | Mapping[str, Any] | None = None,
    registry: CacheRegistry | None = None,
) -> Callable[[], Awaitable[dict[str, Any]]]:
    """Route handler that serves the emitted wire schema (OpenAPI / client validators)."""
    wire = emit_wire_schema(schema, overrides, options, registry)

    async def endpoint() -> dict[str, Any]:
        return wire

    return endpoint

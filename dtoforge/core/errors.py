"""Error Hierarchy — typed, categorized exceptions for all dtoforge failure modes.

Invariants:
    - Every error carries code, category, severity and http_status (class defaults, overridable)
    - Payload errors (400-level) are recoverable; schema errors (500-level) are programming errors
    - to_response() produces the REST envelope; context keys that are unset are omitted
    - A failed validation inside the core is data (ValidatorResult.ok=False), never an exception;
      PayloadValidationError exists only for the web shell

Design Decisions:
    - Single hierarchy with DtoForgeError base: one FastAPI handler renders all of them
    - Metadata as class attributes: a subclass is declared by its code/category, not by
      re-plumbing constructor arguments
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Which side of the boundary failed."""
    VALIDATION = "validation"  # caller sent a bad payload
    SCHEMA = "schema"  # schema or wire schema cannot be compiled
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Where an error happened: schema, dotted path, cache key."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    schema_name: str | None = None
    path: str | None = None
    override_key: str | None = None
    debug_info: dict[str, Any] | None = None


class DtoForgeError(Exception):
    """Base exception for all dtoforge errors."""

    code: str = "DTOFORGE_ERROR"
    category: ErrorCategory = ErrorCategory.INTERNAL
    severity: ErrorSeverity = ErrorSeverity.ERROR
    http_status: int = 500

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        code: str | None = None,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        http_status: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        if code is not None:
            self.code = code
        if category is not None:
            self.category = category
        if severity is not None:
            self.severity = severity
        if http_status is not None:
            self.http_status = http_status

    def to_response(self) -> dict:
        """REST envelope: {"error": {code, message, category, severity, timestamp, context}}."""
        ctx = self.context
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": ctx.timestamp.isoformat(),
                "context": {
                    key: value
                    for key, value in (("schema_name", ctx.schema_name), ("path", ctx.path))
                    if value is not None
                },
            }
        }


# ─── Schema Errors (500-level) ──────────────────────────────────

class IntrospectionError(DtoForgeError):
    """Schema object cannot be introspected (no each_path capability)."""
    code = "INTROSPECTION_ERROR"
    category = ErrorCategory.SCHEMA
    severity = ErrorSeverity.CRITICAL


class SchemaDepthExceededError(IntrospectionError):
    """Sub-schema nesting deeper than the configured bound (likely a cycle)."""
    code = "SCHEMA_DEPTH_EXCEEDED"

    def __init__(self, max_depth: int, path: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.path = path
        super().__init__(f"Schema nesting exceeds max depth {max_depth} at '{path}'", ctx)
        self.max_depth = max_depth


class WireSchemaError(DtoForgeError):
    """Validation engine rejected a wire schema (e.g. invalid regex pattern)."""
    code = "INVALID_WIRE_SCHEMA"
    category = ErrorCategory.SCHEMA
    severity = ErrorSeverity.CRITICAL

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(f"Invalid wire schema: {message}", context)


# ─── Payload Errors (400-level) ─────────────────────────────────

class PayloadValidationError(DtoForgeError):
    """Request payload failed a compiled validator."""
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    http_status = 400

    def __init__(self, errors: list, context: ErrorContext | None = None):
        super().__init__("Invalid request data", context)
        self.errors = errors

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = [
            {"field": e.field, "message": e.message, "type": e.error}
            for e in self.errors
        ]
        return response

"""Validation Result Schemas — the shape every compiled validator returns.

Invariants:
    - ok=True  -> data is the prepared payload (coerced/defaulted/stripped), errors == []
    - ok=False -> data is None, errors non-empty
    - FieldError.field is dot-notation ("" for a root-level failure)
    - FieldError.error is the JSON-Schema keyword that failed ("required", "type", "minLength", ...)

Design Decisions:
    - Pydantic models: FastAPI serializes them directly in 400 responses
"""

from typing import Any

from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """One normalized validation failure."""
    field: str
    error: str
    message: str | None = None


class ValidatorResult(BaseModel):
    """Outcome of running a compiled validator on one payload."""
    ok: bool
    data: Any = None
    errors: list[FieldError] = Field(default_factory=list)

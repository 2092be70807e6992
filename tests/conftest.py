"""Root conftest — shared schemas and an isolated cache registry per test.

Invariants:
    - Every test gets a fresh CacheRegistry (no cross-test cache bleed)
    - user_schema is a new DocumentSchema instance per test (identity-keyed caches)
"""

import os
import re

import pytest

from dtoforge.core.document_schema import DocumentSchema, SchemaKind
from dtoforge.services.cache_registry import CacheRegistry

# Keep test output readable; library defaults are production-oriented
os.environ.setdefault("DTOFORGE_LOG_FORMAT", "text")


@pytest.fixture
def registry() -> CacheRegistry:
    return CacheRegistry()


@pytest.fixture
def user_schema() -> DocumentSchema:
    return DocumentSchema(
        {
            "username": {"type": str, "required": True, "minlength": 3, "maxlength": 64},
            "passwordHash": {"type": str, "required": True},
            "email": {
                "type": str,
                "required": True,
                "match": re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
            },
            "age": {"type": int, "min": 13, "max": 120},
            "gender": {"type": str, "enum": ["male", "female", "other"]},
            "phone": {"type": str, "match": r"^[0-9]{10,15}$"},
            "city": str,
            "address": {
                "street": str,
                "pinCode": {"type": str, "match": r"^[0-9]{6}$"},
            },
            "tags": [{"type": str, "minlength": 2, "maxlength": 16}],
            "roles": [{"type": str, "enum": ["CONSUMER", "PROVIDER", "ADMIN"]}],
            "managerId": {"type": SchemaKind.OBJECT_ID},
            "lastLoginAt": {"type": "Date"},
        },
        name="User",
    )


@pytest.fixture
def account_schema() -> DocumentSchema:
    """username (required, 3-64) + age (optional, 13-120)."""
    return DocumentSchema(
        {
            "username": {"type": str, "required": True, "minlength": 3, "maxlength": 64},
            "age": {"type": int, "min": 13, "max": 120},
        },
        name="Account",
    )

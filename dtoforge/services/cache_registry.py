"""Cache Registry — memoizes rule trees, wire schemas and validators.

Invariants:
    - Rule trees are keyed by schema IDENTITY, never by value
    - Wire schemas / validators are keyed by (schema identity | NO_SCHEMA, OverrideKey)
    - A None schema never triggers introspection: a fresh empty tree is returned per call
    - A None schema shares one bucket per registry (no per-call recomputation)
    - Entries are evicted only when the schema object is garbage-collected (or evict()/clear())

Design Decisions:
    - Handle = id(schema) + weakref.finalize eviction: identity semantics without requiring
      schemas to be hashable (WeakKeyDictionary would use __eq__/__hash__)
    - Non-weakref-able schemas are pinned (strong ref held) so their id can never be reused
    - Registry is a plain object with a lazily built process default (get_registry):
      tests construct their own for isolation
    - No locks: a racing miss only recomputes a pure result (idempotent)
"""

import json
import logging
import re
import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any

from dtoforge.core.rule_types import (
    Overrides, Rule, RuleTree, ValidatorOptions, new_rule_tree,
)

logger = logging.getLogger(__name__)

NO_SCHEMA_KEY = "no-schema"


def _plain(value: Any) -> Any:
    """JSON-ready form of an append definition."""
    if isinstance(value, Rule):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, re.Pattern):
        return value.pattern
    if isinstance(value, Enum):
        return value.value
    return value


def make_override_key(
    overrides: "Overrides | Mapping[str, Any] | None" = None,
    options: "ValidatorOptions | Mapping[str, Any] | None" = None,
) -> str:
    """Deterministic cache key for overrides + validator options.

    Key order and path-list order are irrelevant; absent, None and empty
    collections are equivalent. Append keeps its declared order.
    """
    o = Overrides.from_value(overrides)
    opts = ValidatorOptions.from_value(options)
    data = {
        "include": sorted(o.include) or None,
        "exclude": sorted(o.exclude) or None,
        "optional": sorted(o.optional) or None,
        "required": sorted(o.required) or None,
        "append": _plain(o.append) or None,
        "allowUnknown": opts.allow_unknown,
        "coerceTypes": opts.coerce_types,
    }
    return json.dumps(data, sort_keys=True, default=str, separators=(",", ":"))


@dataclass
class _Bucket:
    wire_schemas: dict[str, dict] = field(default_factory=dict)
    validators: dict[str, Callable] = field(default_factory=dict)


class CacheRegistry:
    """Identity-keyed caches for one process (or one test)."""

    def __init__(self):
        self._rule_trees: dict[int, RuleTree] = {}
        self._buckets: dict[int, _Bucket] = {}
        self._finalizers: dict[int, weakref.finalize] = {}
        self._pinned: dict[int, Any] = {}
        self._no_schema = _Bucket()

    # ─── Registration ───────────────────────────────────────────

    def _handle(self, schema: Any) -> int:
        handle = id(schema)
        if handle in self._finalizers or handle in self._pinned:
            return handle
        try:
            self._finalizers[handle] = weakref.finalize(schema, self._evict_handle, handle)
        except TypeError:
            # no __weakref__ slot: keep it alive so the id stays unique
            self._pinned[handle] = schema
            logger.debug(
                f"Pinned non-weakref-able schema {type(schema).__name__}",
                extra={"schema": type(schema).__name__},
            )
        return handle

    def _evict_handle(self, handle: int) -> None:
        self._rule_trees.pop(handle, None)
        self._buckets.pop(handle, None)
        self._finalizers.pop(handle, None)
        self._pinned.pop(handle, None)

    def evict(self, schema: Any) -> None:
        """Drop every cache entry for `schema` (no-op when unknown)."""
        if schema is None:
            self._no_schema = _Bucket()
            return
        handle = id(schema)
        finalizer = self._finalizers.get(handle)
        if finalizer is not None:
            finalizer.detach()
        self._evict_handle(handle)

    def clear(self) -> None:
        for finalizer in self._finalizers.values():
            finalizer.detach()
        self._rule_trees.clear()
        self._buckets.clear()
        self._finalizers.clear()
        self._pinned.clear()
        self._no_schema = _Bucket()

    # ─── Lookups ────────────────────────────────────────────────

    def get_or_set_rule_tree(
        self, schema: Any, compile_fn: Callable[[Any], RuleTree],
    ) -> RuleTree:
        """Cached rule tree for `schema`; compile_fn runs at most once per schema."""
        if schema is None:
            return new_rule_tree()
        handle = self._handle(schema)
        cached = self._rule_trees.get(handle)
        if cached is not None:
            logger.debug("Rule tree cache hit", extra={"cache": "rule_tree"})
            return cached
        logger.debug("Rule tree cache miss", extra={"cache": "rule_tree"})
        tree = compile_fn(schema)
        self._rule_trees[handle] = tree
        return tree

    def _bucket(self, schema: Any) -> _Bucket:
        if schema is None:
            return self._no_schema
        handle = self._handle(schema)
        bucket = self._buckets.get(handle)
        if bucket is None:
            bucket = self._buckets[handle] = _Bucket()
        return bucket

    def wire_schema_cache(self, schema: Any) -> dict[str, dict]:
        """OverrideKey -> wire schema map for `schema` (created on first use)."""
        return self._bucket(schema).wire_schemas

    def validator_cache(self, schema: Any) -> dict[str, Callable]:
        """OverrideKey -> compiled validator map for `schema` (created on first use)."""
        return self._bucket(schema).validators

    def stats(self) -> dict[str, int]:
        buckets = [*self._buckets.values(), self._no_schema]
        return {
            "schemas": len(self._finalizers) + len(self._pinned),
            "rule_trees": len(self._rule_trees),
            "wire_schemas": sum(len(b.wire_schemas) for b in buckets),
            "validators": sum(len(b.validators) for b in buckets),
        }


@lru_cache
def get_registry() -> CacheRegistry:
    """Process-wide registry used when callers do not pass their own."""
    return CacheRegistry()

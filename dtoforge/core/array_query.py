"""Array Query Simulators — filter/sort/projection over in-memory lists of dicts.

Invariants:
    - Inputs are never mutated: every function returns new lists / new dicts
    - Filter: $or needs one matching branch; every other key must match
    - Sort: None/missing values go last in ascending order, first in descending
    - Projection: include mode if any value is 1, otherwise exclude mode

Design Decisions:
    - Mirrors the operators emitted by query_macros so the same filter document
      can be run against a list in tests and fixtures
"""

import functools
import re
from collections.abc import Mapping, Sequence
from typing import Any

_MISSING = object()


def apply_filter_to_array(
    items: Sequence[Mapping[str, Any]], filter_doc: Mapping[str, Any],
) -> list[Mapping[str, Any]]:
    return [item for item in items if _matches(item, filter_doc)]


def _matches(item: Mapping[str, Any], filter_doc: Mapping[str, Any]) -> bool:
    branches = filter_doc.get("$or")
    if branches:
        if not any(
            all(_field_matches(item, f, cond) for f, cond in branch.items())
            for branch in branches
        ):
            return False
    return all(
        _field_matches(item, field, cond)
        for field, cond in filter_doc.items()
        if field != "$or"
    )


def _field_matches(item: Mapping[str, Any], field: str, cond: Any) -> bool:
    value = item.get(field, _MISSING)

    if isinstance(cond, Mapping):
        if "$exists" in cond:
            present = value is not _MISSING and value is not None
            return present if cond["$exists"] else not present
        if "$gte" in cond or "$lte" in cond:
            if value is _MISSING or value is None:
                return False
            if cond.get("$gte") is not None and not value >= cond["$gte"]:
                return False
            if cond.get("$lte") is not None and not value <= cond["$lte"]:
                return False
            return True
        if "$in" in cond and isinstance(cond["$in"], (list, tuple, set)):
            allowed = cond["$in"]
            if isinstance(value, list):
                return any(element in allowed for element in value)
            return value in allowed
        if "$regex" in cond:
            pattern = cond["$regex"]
            if isinstance(pattern, str):
                pattern = re.compile(pattern)
            text = "" if value is _MISSING or value is None else str(value)
            return pattern.search(text) is not None

    if value is _MISSING:
        return False
    # strict equality: 1 != True
    if isinstance(value, bool) != isinstance(cond, bool):
        return False
    return value == cond


def _compare(a: Any, b: Any) -> int:
    a_none = a is _MISSING or a is None
    b_none = b is _MISSING or b is None
    if a_none and b_none:
        return 0
    if a_none:
        return 1
    if b_none:
        return -1
    try:
        return (a > b) - (a < b)
    except TypeError:
        sa, sb = str(a), str(b)
        return (sa > sb) - (sa < sb)


def apply_sort_to_array(
    items: Sequence[Mapping[str, Any]], sort: Mapping[str, int],
) -> list[Mapping[str, Any]]:
    """Stable multi-field sort; direction 1 ascending, -1 descending."""
    if not sort:
        return list(items)

    def cmp(a: Mapping[str, Any], b: Mapping[str, Any]) -> int:
        for field, direction in sort.items():
            result = _compare(a.get(field, _MISSING), b.get(field, _MISSING))
            if result:
                return result if direction == 1 else -result
        return 0

    return sorted(items, key=functools.cmp_to_key(cmp))


def apply_projection_to_array(
    items: Sequence[Mapping[str, Any]], projection: Mapping[str, int],
) -> list[dict[str, Any]]:
    if not projection:
        return [dict(item) for item in items]

    if any(flag == 1 for flag in projection.values()):
        keep = [field for field, flag in projection.items() if flag == 1]
        return [{f: item[f] for f in keep if f in item} for item in items]

    drop = {field for field, flag in projection.items() if flag == 0}
    return [{k: v for k, v in item.items() if k not in drop} for item in items]

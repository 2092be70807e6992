"""Query Macros — convenience parameters -> Mongo-style query documents.

Invariants:
    - build_filter never raises on empty input: {} means "match everything"
    - exists/not_exists merge into an existing field condition instead of replacing it
    - parse_pagination always returns page >= 1 and 1 <= page_size <= MAX_PAGE_SIZE
    - parse_sort defaults to newest-first ({"_id": -1})

Design Decisions:
    - Keyword arguments named after the operators (in_, range_) to avoid shadowing builtins
    - Regexes are compiled here so a bad user pattern fails at build time, not at query time
"""

import re
from collections.abc import Mapping
from typing import Any

DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 200


def build_filter(
    equals: Mapping[str, Any] | None = None,
    in_: Mapping[str, list] | None = None,
    range_: Mapping[str, Mapping[str, Any]] | None = None,
    search: Mapping[str, Any] | None = None,
    exists: list[str] | None = None,
    not_exists: list[str] | None = None,
    regex: Mapping[str, Mapping[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a filter document.

    >>> build_filter(equals={"role": "ADMIN"}, range_={"age": {"gte": 18}})
    {'role': 'ADMIN', 'age': {'$gte': 18}}
    """
    f: dict[str, Any] = {}

    if equals:
        f.update(equals)

    for field, values in (in_ or {}).items():
        f[field] = {"$in": list(values)}

    for field, bounds in (range_ or {}).items():
        condition: dict[str, Any] = {}
        if bounds.get("gte") is not None:
            condition["$gte"] = bounds["gte"]
        if bounds.get("lte") is not None:
            condition["$lte"] = bounds["lte"]
        f[field] = condition

    if search and search.get("q") and search.get("fields"):
        flags = 0 if search.get("case_insensitive") is False else re.IGNORECASE
        pattern = re.compile(search["q"], flags)
        f["$or"] = [{field: {"$regex": pattern}} for field in search["fields"]]

    for field in exists or []:
        f[field] = {**(f.get(field) or {}), "$exists": True}

    for field in not_exists or []:
        f[field] = {**(f.get(field) or {}), "$exists": False}

    for field, spec in (regex or {}).items():
        f[field] = {"$regex": re.compile(spec["pattern"], _regex_flags(spec.get("options")))}

    return f


def _regex_flags(options: str | None) -> int:
    flags = 0
    for letter in options or "":
        if letter == "i":
            flags |= re.IGNORECASE
        elif letter == "m":
            flags |= re.MULTILINE
        elif letter == "s":
            flags |= re.DOTALL
        elif letter == "x":
            flags |= re.VERBOSE
        else:
            raise ValueError(f"Unsupported regex option: {letter!r}")
    return flags


def build_projection(
    include: list[str] | None = None, exclude: list[str] | None = None,
) -> dict[str, int]:
    """include -> {f: 1}, exclude -> {f: 0}; both empty -> {} (no projection)."""
    projection: dict[str, int] = {}
    for field in include or []:
        projection[field] = 1
    for field in exclude or []:
        projection[field] = 0
    return projection


def parse_sort(sort: str | Mapping[str, int] | None = None) -> dict[str, int]:
    """Parse "createdAt:desc,username" -> {"createdAt": -1, "username": 1}."""
    if not sort:
        return {"_id": -1}
    if isinstance(sort, Mapping):
        return dict(sort)

    out: dict[str, int] = {}
    for token in (t.strip() for t in str(sort).split(",")):
        if not token:
            continue
        field, _, direction = token.partition(":")
        out[field] = -1 if (direction or "asc").lower() == "desc" else 1
    return out


def parse_pagination(page: int | str | None = 1, page_size: int | str | None = DEFAULT_PAGE_SIZE) -> dict[str, int]:
    """Clamp page/page_size and derive skip/limit."""
    p = max(1, _to_int(page) or 1)
    s = max(1, min(MAX_PAGE_SIZE, _to_int(page_size) or DEFAULT_PAGE_SIZE))
    return {"page": p, "page_size": s, "skip": (p - 1) * s, "limit": s}


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

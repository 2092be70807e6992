"""Rule Types — the constraint model every other component operates on.

Invariants:
    - PrimitiveType is closed: unknown external kinds become MIXED, never a new member
    - An OBJECT rule always carries a children dict (possibly empty)
    - A RuleTree is an OBJECT rule used as the root of one document shape
    - Overrides / ValidatorOptions are frozen: they are cache-key material

Design Decisions:
    - Dataclasses over dicts: facets are named, missing facets are None (ADR: no magic keys)
    - str Enum for PrimitiveType: serializes to JSON without custom encoders
    - camelCase in to_dict(): matches the wire vocabulary callers already write in append
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any


class PrimitiveType(str, Enum):
    """Kinds a rule node can take."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT_ID = "objectId"
    ARRAY = "array"
    OBJECT = "object"
    MIXED = "mixed"
    BUFFER = "buffer"


class _NoDefault:
    """Marker for 'no default declared' (None is a legal default)."""

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __deepcopy__(self, memo):
        return self


NO_DEFAULT: Any = _NoDefault()

# dataclass field name -> camelCase key used by from_dict/to_dict
_CAMEL_KEYS = {
    "min_length": "minLength",
    "max_length": "maxLength",
    "min_items": "minItems",
    "max_items": "maxItems",
}


@dataclass
class Rule:
    """A single constraint node. Facets irrelevant to `type` stay None."""

    type: PrimitiveType
    required: bool | None = None

    # string
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    enum: list[Any] | None = None

    # number / date (dates as epoch milliseconds)
    min: float | None = None
    max: float | None = None

    # array
    items: "Rule | None" = None
    min_items: int | None = None
    max_items: int | None = None

    # object
    children: "dict[str, Rule] | None" = None

    default: Any = NO_DEFAULT

    def __post_init__(self):
        self.type = PrimitiveType(self.type)
        if self.type is PrimitiveType.OBJECT and self.children is None:
            self.children = {}

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @classmethod
    def from_dict(cls, data: "Mapping[str, Any] | Rule") -> "Rule":
        """Build a Rule from a camelCase or snake_case mapping.

        Nested `items` and `children` are converted recursively. A Rule
        passed in is returned unchanged.
        """
        if isinstance(data, Rule):
            return data
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            camel = _CAMEL_KEYS.get(f.name, f.name)
            if camel in data:
                kwargs[f.name] = data[camel]
            elif f.name in data:
                kwargs[f.name] = data[f.name]
        if kwargs.get("items") is not None:
            kwargs["items"] = cls.from_dict(kwargs["items"])
        if kwargs.get("children") is not None:
            kwargs["children"] = {
                name: cls.from_dict(child)
                for name, child in kwargs["children"].items()
            }
        if kwargs.get("enum") is not None:
            kwargs["enum"] = list(kwargs["enum"])
        # compiled regex -> source text
        pattern = kwargs.get("pattern")
        if pattern is not None and not isinstance(pattern, str):
            kwargs["pattern"] = pattern.pattern
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """camelCase mapping of the set facets (None facets omitted)."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value is NO_DEFAULT:
                continue
            key = _CAMEL_KEYS.get(f.name, f.name)
            if f.name == "type":
                out[key] = value.value
            elif f.name == "items":
                out[key] = value.to_dict()
            elif f.name == "children":
                out[key] = {name: child.to_dict() for name, child in value.items()}
            else:
                out[key] = value
        return out

    def clone(self, **changes: Any) -> "Rule":
        """Shallow copy with `changes` applied; nested nodes are shared, never mutated."""
        return replace(self, **changes)


# The root container. Kept as an alias: a RuleTree *is* an object Rule.
RuleTree = Rule


def new_rule_tree() -> RuleTree:
    return Rule(type=PrimitiveType.OBJECT, children={})


def set_nested(root: RuleTree, path: str, rule: Rule) -> None:
    """Attach `rule` at dotted `path`, creating intermediate object nodes.

    "address.street" -> root.children["address"].children["street"] = rule
    """
    *parents, leaf = path.split(".")
    current = root
    for segment in parents:
        if current.children is None:
            current.children = {}
        node = current.children.get(segment)
        if node is None:
            node = Rule(type=PrimitiveType.OBJECT, children={})
            current.children[segment] = node
        current = node
    if current.children is None:
        current.children = {}
    current.children[leaf] = rule


def _as_tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(value)


@dataclass(frozen=True)
class Overrides:
    """Endpoint-specific adaptation of a base RuleTree.

    include  — whitelist; when non-empty only these paths survive
    exclude  — blacklist; always removes, applied after include
    optional — force required=False
    required — force required=True (wins over optional)
    append   — path -> Rule or mapping; injected unconditionally
    """

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    required: tuple[str, ...] = ()
    append: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: "Overrides | Mapping[str, Any] | None") -> "Overrides":
        if value is None:
            return cls()
        if isinstance(value, Overrides):
            return value
        return cls(
            include=_as_tuple(value.get("include")),
            exclude=_as_tuple(value.get("exclude")),
            optional=_as_tuple(value.get("optional")),
            required=_as_tuple(value.get("required")),
            append=dict(value.get("append") or {}),
        )


@dataclass(frozen=True)
class ValidatorOptions:
    """Runtime switches for compiled validators."""

    coerce_types: bool = False
    allow_unknown: bool = False

    @classmethod
    def from_value(
        cls, value: "ValidatorOptions | Mapping[str, Any] | None",
    ) -> "ValidatorOptions":
        if value is None:
            return cls()
        if isinstance(value, ValidatorOptions):
            return value
        return cls(
            coerce_types=bool(value.get("coerce_types", value.get("coerceTypes", False))),
            allow_unknown=bool(value.get("allow_unknown", value.get("allowUnknown", False))),
        )

"""Document Schema — declarative document shapes that expose path enumeration.

Invariants:
    - each_path(fn) calls fn(dotted_path, descriptor) once per declared leaf, in declaration order
    - Nested plain dicts without a "type" key declare dotted paths, not sub-documents
    - A DocumentSchema value (or a list of one) declares an embedded sub-document
    - Every descriptor carries a `kind` tag and an `options` mapping; string tags outside
      SchemaKind are kept verbatim (never rejected at declaration)

Design Decisions:
    - Mongoose-style definitions ({"age": {"type": int, "min": 13}}): the introspector
      only relies on the each_path capability, so any provider with the same shape works
    - Python types map to kinds (str -> String, int/float -> Number, ...); an explicit
      SchemaKind or its string tag is accepted where a type is not expressive enough (ObjectID)
    - add() kept mutable on purpose: it is the only way to declare a recursive schema
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class SchemaKind(str, Enum):
    """Declared kind of a schema path."""
    STRING = "String"
    NUMBER = "Number"
    DECIMAL128 = "Decimal128"
    BOOLEAN = "Boolean"
    DATE = "Date"
    OBJECT_ID = "ObjectID"
    BUFFER = "Buffer"
    ARRAY = "Array"
    EMBEDDED = "Embedded"
    MIXED = "Mixed"


_PY_TYPE_KINDS: dict[Any, SchemaKind] = {
    str: SchemaKind.STRING,
    int: SchemaKind.NUMBER,
    float: SchemaKind.NUMBER,
    Decimal: SchemaKind.DECIMAL128,
    bool: SchemaKind.BOOLEAN,
    datetime: SchemaKind.DATE,
    date: SchemaKind.DATE,
    bytes: SchemaKind.BUFFER,
    bytearray: SchemaKind.BUFFER,
    dict: SchemaKind.MIXED,
    object: SchemaKind.MIXED,
    Any: SchemaKind.MIXED,
    list: SchemaKind.ARRAY,
}


@dataclass(eq=False)
class FieldDescriptor:
    """Per-path type tag plus constraint options."""
    kind: str
    options: dict[str, Any] = field(default_factory=dict)
    caster: "FieldDescriptor | None" = None
    schema: "DocumentSchema | None" = None


def _kind_of(declared: Any) -> str:
    if isinstance(declared, SchemaKind):
        return declared.value
    if isinstance(declared, str):
        # unrecognized tags ("Map", "UUID", ...) pass through; the introspector maps them to mixed
        return declared
    if isinstance(declared, type) and issubclass(declared, Enum):
        return SchemaKind.STRING.value
    return _PY_TYPE_KINDS.get(declared, SchemaKind.MIXED).value


def _is_nested_block(value: Any) -> bool:
    return isinstance(value, Mapping) and "type" not in value


class DocumentSchema:
    """A declared document shape.

    >>> user = DocumentSchema({
    ...     "username": {"type": str, "required": True, "minlength": 3},
    ...     "address": {"street": str},
    ...     "tags": [{"type": str, "maxlength": 16}],
    ... })
    >>> user.paths()
    ['username', 'address.street', 'tags']
    """

    def __init__(self, definition: Mapping[str, Any] | None = None, name: str | None = None):
        self.name = name
        self._paths: dict[str, FieldDescriptor] = {}
        if definition:
            self.add(definition)

    def __repr__(self) -> str:
        return f"DocumentSchema(name={self.name!r}, paths={len(self._paths)})"

    def add(self, definition: Mapping[str, Any], prefix: str = "") -> "DocumentSchema":
        """Declare more paths (dotted under `prefix`)."""
        for key, value in definition.items():
            path = f"{prefix}{key}"
            if _is_nested_block(value):
                self.add(value, prefix=f"{path}.")
            else:
                self._paths[path] = self._descriptor(value)
        return self

    def each_path(self, fn: Callable[[str, FieldDescriptor], Any]) -> None:
        for path, descriptor in self._paths.items():
            fn(path, descriptor)

    def paths(self) -> list[str]:
        return list(self._paths)

    def path(self, name: str) -> FieldDescriptor | None:
        return self._paths.get(name)

    def _descriptor(self, value: Any) -> FieldDescriptor:
        if isinstance(value, Mapping):
            options = {k: v for k, v in value.items() if k != "type"}
            declared = value["type"]
        else:
            options = {}
            declared = value

        if isinstance(declared, DocumentSchema):
            return FieldDescriptor(SchemaKind.EMBEDDED.value, options, schema=declared)

        if isinstance(declared, list):
            caster = self._element_descriptor(declared[0]) if declared else None
            return FieldDescriptor(SchemaKind.ARRAY.value, options, caster=caster)

        if isinstance(declared, type) and issubclass(declared, Enum):
            options.setdefault("enum", declared)
        return FieldDescriptor(_kind_of(declared), options)

    def _element_descriptor(self, element: Any) -> FieldDescriptor:
        # [{"street": str}] declares an array of sub-documents
        if _is_nested_block(element):
            sub = DocumentSchema(element)
            return FieldDescriptor(SchemaKind.EMBEDDED.value, schema=sub)
        return self._descriptor(element)

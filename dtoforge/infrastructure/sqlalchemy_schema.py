"""SQLAlchemy Schema Provider — exposes a declarative model (or Table) via each_path.

Invariants:
    - One path per mapped column, keyed by attribute name, in mapper order
    - Column types map to the same kind tags DocumentSchema uses (String, Number, ...)
    - required = NOT NULL, no client/server default, not a primary key
    - String(length) -> maxlength; Enum -> enum (stored values); ARRAY -> Array with caster
    - Column.info["constraints"] is merged into the options (min/max/match/minlength/...)
    - Objects SQLAlchemy cannot inspect raise IntrospectionError at construction

Design Decisions:
    - Adapter instead of teaching the introspector about SQLAlchemy: the core only ever
      sees the each_path capability (ADR: one provider boundary)
    - Relationships are not walked: they are separate aggregates, DTOs reference them by id
    - Primary keys are optional: they are generated server-side or supplied by the route
"""

from collections.abc import Callable
from typing import Any

from sqlalchemy import (
    ARRAY, JSON, Boolean, Date, DateTime, Enum, Integer, LargeBinary,
    Numeric, String, Table, Uuid,
)
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.types import TypeEngine

from dtoforge.core.document_schema import FieldDescriptor, SchemaKind
from dtoforge.core.errors import ErrorContext, IntrospectionError

UUID_PATTERN: str = (
    "^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def _type_descriptor(sa_type: TypeEngine) -> FieldDescriptor:
    # Enum subclasses String: check it first
    if isinstance(sa_type, Enum):
        return FieldDescriptor(SchemaKind.STRING.value, {"enum": list(sa_type.enums)})
    if isinstance(sa_type, Uuid):
        return FieldDescriptor(SchemaKind.STRING.value, {"match": UUID_PATTERN})
    if isinstance(sa_type, String):
        options = {"maxlength": sa_type.length} if sa_type.length else {}
        return FieldDescriptor(SchemaKind.STRING.value, options)
    if isinstance(sa_type, Boolean):
        return FieldDescriptor(SchemaKind.BOOLEAN.value)
    if isinstance(sa_type, Integer):
        return FieldDescriptor(SchemaKind.NUMBER.value)
    if isinstance(sa_type, Numeric):
        return FieldDescriptor(SchemaKind.DECIMAL128.value)
    if isinstance(sa_type, (DateTime, Date)):
        return FieldDescriptor(SchemaKind.DATE.value)
    if isinstance(sa_type, LargeBinary):
        return FieldDescriptor(SchemaKind.BUFFER.value)
    if isinstance(sa_type, ARRAY):
        return FieldDescriptor(
            SchemaKind.ARRAY.value, caster=_type_descriptor(sa_type.item_type),
        )
    if isinstance(sa_type, JSON):
        return FieldDescriptor(SchemaKind.MIXED.value)
    return FieldDescriptor(SchemaKind.MIXED.value)


def column_descriptor(column: Any) -> FieldDescriptor:
    """Column -> FieldDescriptor with required/default/info constraints applied."""
    descriptor = _type_descriptor(column.type)
    options = dict(descriptor.options)

    has_default = column.default is not None or column.server_default is not None
    options["required"] = not column.nullable and not has_default and not column.primary_key

    if getattr(column.default, "is_scalar", False):
        options["default"] = column.default.arg

    options.update(column.info.get("constraints", {}))
    descriptor.options = options
    return descriptor


class SqlAlchemySchema:
    """each_path provider over a mapped class or a Table."""

    def __init__(self, model: Any):
        self.name = getattr(model, "__name__", None) or getattr(model, "name", None)
        try:
            inspected = sa_inspect(model)
        except NoInspectionAvailable as exc:
            raise IntrospectionError(
                f"{type(model).__name__} is not a SQLAlchemy model or Table",
                ErrorContext(schema_name=type(model).__name__),
            ) from exc

        if isinstance(inspected, Table):
            self._columns = [(column.key, column) for column in inspected.columns]
        else:
            self._columns = [
                (prop.key, prop.columns[0]) for prop in inspected.column_attrs
            ]

    def __repr__(self) -> str:
        return f"SqlAlchemySchema({self.name!r})"

    def each_path(self, fn: Callable[[str, FieldDescriptor], Any]) -> None:
        for key, column in self._columns:
            fn(key, column_descriptor(column))

"""Document Schema — pure tests for the declarative each_path provider.

Tests cover:
    - Python types map to kind tags
    - Nested blocks declare dotted paths; DocumentSchema values declare sub-documents
    - Lists declare arrays with an element caster
    - Enum classes become string kinds with an enum option
"""

from datetime import datetime
from enum import Enum

from dtoforge.core.document_schema import DocumentSchema, SchemaKind


class Plan(str, Enum):
    FREE = "free"
    PRO = "pro"


def _collect(schema: DocumentSchema) -> dict:
    seen = {}
    schema.each_path(lambda path, descriptor: seen.__setitem__(path, descriptor))
    return seen


def test_python_types_map_to_kinds():
    schema = DocumentSchema({
        "name": str, "count": int, "ratio": float, "active": bool,
        "at": datetime, "blob": bytes, "meta": dict,
    })
    kinds = {path: d.kind for path, d in _collect(schema).items()}
    assert kinds == {
        "name": "String", "count": "Number", "ratio": "Number", "active": "Boolean",
        "at": "Date", "blob": "Buffer", "meta": "Mixed",
    }


def test_nested_block_declares_dotted_paths():
    schema = DocumentSchema({"address": {"street": str, "geo": {"lat": float}}})
    assert schema.paths() == ["address.street", "address.geo.lat"]


def test_options_exclude_type_key():
    schema = DocumentSchema({"age": {"type": int, "min": 13, "required": True}})
    assert schema.path("age").options == {"min": 13, "required": True}


def test_list_declares_array_with_caster():
    schema = DocumentSchema({"tags": [{"type": str, "maxlength": 16}]})
    descriptor = schema.path("tags")
    assert descriptor.kind == SchemaKind.ARRAY.value
    assert descriptor.caster.kind == "String"
    assert descriptor.caster.options == {"maxlength": 16}


def test_list_of_plain_block_declares_subdocument_array():
    schema = DocumentSchema({"items": [{"sku": str, "qty": int}]})
    caster = schema.path("items").caster
    assert caster.kind == "Embedded"
    assert caster.schema.paths() == ["sku", "qty"]


def test_schema_value_declares_embedded_document():
    address = DocumentSchema({"street": str})
    schema = DocumentSchema({"address": {"type": address, "required": True}})
    descriptor = schema.path("address")
    assert descriptor.kind == "Embedded"
    assert descriptor.schema is address
    assert descriptor.options == {"required": True}


def test_enum_class_becomes_string_with_enum_option():
    schema = DocumentSchema({"plan": Plan})
    descriptor = schema.path("plan")
    assert descriptor.kind == "String"
    assert descriptor.options["enum"] is Plan


def test_explicit_kind_tag_accepted():
    schema = DocumentSchema({"ref": {"type": "ObjectID"}, "other": SchemaKind.DECIMAL128})
    assert schema.path("ref").kind == "ObjectID"
    assert schema.path("other").kind == "Decimal128"


def test_each_path_preserves_declaration_order():
    schema = DocumentSchema({"b": str, "a": str, "c": {"d": str}})
    assert list(_collect(schema)) == ["b", "a", "c.d"]


def test_add_extends_schema():
    schema = DocumentSchema({"a": str})
    schema.add({"b": int})
    assert schema.paths() == ["a", "b"]


def test_unrecognized_kind_tag_kept_verbatim():
    schema = DocumentSchema({"meta": {"type": "Map"}, "ref": "UUID"})
    assert schema.path("meta").kind == "Map"
    assert schema.path("ref").kind == "UUID"

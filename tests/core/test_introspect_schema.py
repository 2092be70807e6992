"""Schema Introspection — verifies kind mapping, constraint lifting, and failure modes.

Tests:
    - map_kind is total (unknown tags -> mixed)
    - String/number/array/date/objectId constraints lifted from options
    - Dotted paths and embedded sub-schemas build nested object nodes
    - Non-providers raise IntrospectionError; runaway nesting raises SchemaDepthExceededError
"""

from datetime import datetime, timezone
from enum import Enum

import pytest

from dtoforge.core.document_schema import DocumentSchema, FieldDescriptor
from dtoforge.core.errors import IntrospectionError, SchemaDepthExceededError
from dtoforge.core.introspect_schema import introspect_schema, map_kind, to_epoch_ms
from dtoforge.core.rule_types import PrimitiveType


class Role(str, Enum):
    CONSUMER = "CONSUMER"
    ADMIN = "ADMIN"


class TestMapKind:
    @pytest.mark.parametrize("kind,expected", [
        ("String", PrimitiveType.STRING),
        ("Number", PrimitiveType.NUMBER),
        ("Decimal128", PrimitiveType.NUMBER),
        ("Boolean", PrimitiveType.BOOLEAN),
        ("Date", PrimitiveType.DATE),
        ("ObjectID", PrimitiveType.OBJECT_ID),
        ("Buffer", PrimitiveType.BUFFER),
        ("Array", PrimitiveType.ARRAY),
        ("Embedded", PrimitiveType.OBJECT),
        ("Mixed", PrimitiveType.MIXED),
    ])
    def test_known_kinds(self, kind, expected):
        assert map_kind(kind) is expected

    def test_unknown_kind_is_mixed(self):
        assert map_kind("Map") is PrimitiveType.MIXED
        assert map_kind(None) is PrimitiveType.MIXED


class TestConstraintLifting:
    def test_string_facets(self, user_schema):
        tree = introspect_schema(user_schema)
        username = tree.children["username"]
        assert username.type is PrimitiveType.STRING
        assert username.required is True
        assert (username.min_length, username.max_length) == (3, 64)

    def test_compiled_and_string_patterns(self, user_schema):
        tree = introspect_schema(user_schema)
        assert tree.children["email"].pattern == r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
        assert tree.children["phone"].pattern == r"^[0-9]{10,15}$"

    def test_number_bounds(self, user_schema):
        age = introspect_schema(user_schema).children["age"]
        assert (age.min, age.max) == (13, 120)
        assert age.required is False

    def test_enum_list(self, user_schema):
        gender = introspect_schema(user_schema).children["gender"]
        assert gender.enum == ["male", "female", "other"]

    def test_enum_class_values(self):
        schema = DocumentSchema({"role": Role})
        assert introspect_schema(schema).children["role"].enum == ["CONSUMER", "ADMIN"]

    def test_array_items(self, user_schema):
        tree = introspect_schema(user_schema)
        tags = tree.children["tags"]
        assert tags.type is PrimitiveType.ARRAY
        assert tags.items.type is PrimitiveType.STRING
        assert (tags.items.min_length, tags.items.max_length) == (2, 16)
        assert tree.children["roles"].items.enum == ["CONSUMER", "PROVIDER", "ADMIN"]

    def test_array_item_counts(self):
        schema = DocumentSchema({"tags": {"type": [str], "minItems": 1, "maxItems": 5}})
        tags = introspect_schema(schema).children["tags"]
        assert (tags.min_items, tags.max_items) == (1, 5)

    def test_object_id_and_date(self, user_schema):
        tree = introspect_schema(user_schema)
        assert tree.children["managerId"].type is PrimitiveType.OBJECT_ID
        assert tree.children["lastLoginAt"].type is PrimitiveType.DATE

    def test_date_bounds_become_epoch_ms(self):
        start = datetime(2020, 1, 1, tzinfo=timezone.utc)
        schema = DocumentSchema({"at": {"type": datetime, "min": start, "max": "2021-01-01T00:00:00Z"}})
        at = introspect_schema(schema).children["at"]
        assert at.min == 1577836800000
        assert at.max == 1609459200000

    def test_scalar_default_lifted_callable_skipped(self):
        schema = DocumentSchema({
            "status": {"type": str, "default": "active"},
            "createdAt": {"type": datetime, "default": datetime.now},
        })
        tree = introspect_schema(schema)
        assert tree.children["status"].default == "active"
        assert not tree.children["createdAt"].has_default


class TestNesting:
    def test_dotted_paths_nest(self, user_schema):
        address = introspect_schema(user_schema).children["address"]
        assert address.type is PrimitiveType.OBJECT
        assert set(address.children) == {"street", "pinCode"}
        assert address.children["pinCode"].pattern == r"^[0-9]{6}$"

    def test_embedded_schema_recurses(self):
        geo = DocumentSchema({"lat": {"type": float, "required": True}})
        schema = DocumentSchema({"geo": {"type": geo, "required": True}})
        node = introspect_schema(schema).children["geo"]
        assert node.type is PrimitiveType.OBJECT
        assert node.required is True
        assert node.children["lat"].required is True

    def test_array_of_subdocuments(self):
        schema = DocumentSchema({"lines": [{"sku": str, "qty": int}]})
        items = introspect_schema(schema).children["lines"].items
        assert items.type is PrimitiveType.OBJECT
        assert items.children["qty"].type is PrimitiveType.NUMBER

    def test_duck_typed_provider(self):
        class Provider:
            def each_path(self, fn):
                fn("title", FieldDescriptor("String", {"required": True}))
                fn("score", FieldDescriptor("Weird"))

        tree = introspect_schema(Provider())
        assert tree.children["title"].required is True
        assert tree.children["score"].type is PrimitiveType.MIXED


class TestFailures:
    @pytest.mark.parametrize("bad", [None, 42, {"username": str}])
    def test_non_provider_raises(self, bad):
        with pytest.raises(IntrospectionError) as exc_info:
            introspect_schema(bad)
        assert exc_info.value.code == "INTROSPECTION_ERROR"

    def test_recursive_schema_hits_depth_bound(self):
        node = DocumentSchema({"name": str})
        node.add({"child": node})
        with pytest.raises(SchemaDepthExceededError) as exc_info:
            introspect_schema(node, max_depth=4)
        assert exc_info.value.code == "SCHEMA_DEPTH_EXCEEDED"
        assert "child.child" in str(exc_info.value.message)

    def test_depth_within_bound_succeeds(self):
        inner = DocumentSchema({"x": str})
        middle = DocumentSchema({"inner": inner})
        outer = DocumentSchema({"middle": middle})
        tree = introspect_schema(outer, max_depth=2)
        assert tree.children["middle"].children["inner"].children["x"].type is PrimitiveType.STRING


def test_to_epoch_ms_naive_is_utc():
    assert to_epoch_ms(datetime(1970, 1, 2)) == 86_400_000
    assert to_epoch_ms(1234) == 1234

"""Override Engine — pure tests for include/exclude/optional/required/append.

Tests cover:
    - flatten_rules: dotted leaves, childless object nodes kept
    - include whitelist, exclude wins over include
    - required wins over optional
    - append bypasses filtering and gets {type: string, required: true} defaults
    - The input tree is never mutated
"""

from dtoforge.core.apply_overrides import apply_overrides, flatten_rules, merge_append_rule
from dtoforge.core.introspect_schema import introspect_schema
from dtoforge.core.rule_types import Overrides, PrimitiveType, Rule, new_rule_tree, set_nested


def _tree():
    tree = new_rule_tree()
    set_nested(tree, "username", Rule(type=PrimitiveType.STRING, required=True))
    set_nested(tree, "age", Rule(type=PrimitiveType.NUMBER, required=False))
    set_nested(tree, "address.street", Rule(type=PrimitiveType.STRING))
    set_nested(tree, "address.pinCode", Rule(type=PrimitiveType.STRING, required=True))
    return tree


class TestFlatten:
    def test_dotted_leaves_in_order(self):
        assert list(flatten_rules(_tree())) == [
            "username", "age", "address.street", "address.pinCode",
        ]

    def test_childless_object_is_a_leaf(self):
        tree = new_rule_tree()
        set_nested(tree, "meta", Rule(type=PrimitiveType.OBJECT))
        assert list(flatten_rules(tree)) == ["meta"]


class TestFiltering:
    def test_no_overrides_keeps_everything(self):
        out = apply_overrides(_tree())
        assert list(flatten_rules(out)) == list(flatten_rules(_tree()))

    def test_include_whitelists(self):
        out = apply_overrides(_tree(), {"include": ["username", "address.pinCode"]})
        assert list(flatten_rules(out)) == ["username", "address.pinCode"]
        assert out.children["address"].type is PrimitiveType.OBJECT

    def test_exclude_removes(self):
        out = apply_overrides(_tree(), {"exclude": ["age", "address.street"]})
        assert list(flatten_rules(out)) == ["username", "address.pinCode"]

    def test_exclude_wins_over_include(self):
        out = apply_overrides(_tree(), {"include": ["username", "age"], "exclude": ["age"]})
        assert list(flatten_rules(out)) == ["username"]

    def test_unknown_include_yields_empty_tree(self):
        out = apply_overrides(_tree(), {"include": ["nope"]})
        assert out.children == {}


class TestRequiredness:
    def test_optional_clears_required(self):
        out = apply_overrides(_tree(), {"optional": ["username"]})
        assert out.children["username"].required is False

    def test_required_sets_required(self):
        out = apply_overrides(_tree(), {"required": ["age", "address.street"]})
        assert out.children["age"].required is True
        assert out.children["address"].children["street"].required is True

    def test_required_wins_over_optional(self):
        out = apply_overrides(_tree(), {"optional": ["age"], "required": ["age"]})
        assert out.children["age"].required is True


class TestAppend:
    def test_append_defaults(self):
        out = apply_overrides(_tree(), {"append": {"confirmPassword": {}}})
        rule = out.children["confirmPassword"]
        assert rule.type is PrimitiveType.STRING
        assert rule.required is True

    def test_append_caller_facets_win(self):
        out = apply_overrides(_tree(), {"append": {"otp": {"type": "number", "required": False, "min": 0}}})
        rule = out.children["otp"]
        assert (rule.type, rule.required, rule.min) == (PrimitiveType.NUMBER, False, 0)

    def test_append_bypasses_include_and_exclude(self):
        out = apply_overrides(_tree(), Overrides(
            include=("username",), exclude=("token",), append={"token": {"minLength": 6}},
        ))
        assert list(flatten_rules(out)) == ["username", "token"]
        assert out.children["token"].min_length == 6

    def test_excluded_path_restored_by_append(self):
        out = apply_overrides(_tree(), {
            "exclude": ["username"], "append": {"username": {"minLength": 8}},
        })
        assert out.children["username"].min_length == 8

    def test_append_dotted_path_nests(self):
        out = apply_overrides(_tree(), {"append": {"address.city": {"type": "string"}}})
        assert set(out.children["address"].children) == {"street", "pinCode", "city"}

    def test_append_replaces_existing_rule(self):
        out = apply_overrides(_tree(), {"append": {"age": {"type": "string"}}})
        assert out.children["age"].type is PrimitiveType.STRING

    def test_merge_append_rule_accepts_rule(self):
        rule = merge_append_rule(Rule(type=PrimitiveType.BOOLEAN))
        assert rule.type is PrimitiveType.BOOLEAN
        assert rule.required is True


class TestPurity:
    def test_input_tree_not_mutated(self, user_schema):
        base = introspect_schema(user_schema)
        before = base.to_dict()
        apply_overrides(base, {
            "exclude": ["age"],
            "optional": ["username"],
            "append": {"address.city": {}, "confirmPassword": {}},
        })
        assert base.to_dict() == before

    def test_output_is_fresh_tree(self):
        base = _tree()
        out = apply_overrides(base)
        assert out is not base
        assert out.children["username"] is not base.children["username"]

"""Override Engine — adapts a base RuleTree to one endpoint.

Invariants:
    - Output is a fresh tree; the input tree (often a shared cached one) is never mutated
    - exclude is applied after include and always wins over it
    - required wins over optional when a path is in both
    - append bypasses include/exclude: appended paths are always present
    - Appended rules default to {type: string, required: true}; caller's facets win

Design Decisions:
    - Flatten -> filter -> rebuild instead of in-place pruning: path algebra stays on a flat
      dict, nesting is rebuilt once with the same set_nested rule the introspector uses
    - Childless object nodes are leaves: an empty embedded document survives flattening
"""

from collections.abc import Mapping
from typing import Any

from dtoforge.core.rule_types import (
    Overrides, PrimitiveType, Rule, RuleTree, new_rule_tree, set_nested,
)

APPEND_DEFAULTS: dict[str, Any] = {"type": PrimitiveType.STRING.value, "required": True}


def flatten_rules(tree: RuleTree, prefix: str = "") -> dict[str, Rule]:
    """Nested tree -> {dotted_path: leaf Rule}, depth-first in declaration order."""
    out: dict[str, Rule] = {}
    for name, child in (tree.children or {}).items():
        path = f"{prefix}.{name}" if prefix else name
        if child.type is PrimitiveType.OBJECT and child.children:
            out.update(flatten_rules(child, path))
        else:
            out[path] = child
    return out


def merge_append_rule(definition: "Rule | Mapping[str, Any]") -> Rule:
    """Apply APPEND_DEFAULTS under a caller-supplied definition."""
    if isinstance(definition, Rule):
        definition = definition.to_dict()
    return Rule.from_dict({**APPEND_DEFAULTS, **definition})


def apply_overrides(
    rule_tree: RuleTree, overrides: "Overrides | Mapping[str, Any] | None" = None,
) -> RuleTree:
    """Apply include/exclude/optional/required/append to `rule_tree`."""
    overrides = Overrides.from_value(overrides)
    include = set(overrides.include)
    exclude = set(overrides.exclude)
    optional = set(overrides.optional)
    required = set(overrides.required)

    effective: dict[str, Rule] = {}
    for path, rule in flatten_rules(rule_tree).items():
        if include and path not in include:
            continue
        if path in exclude:
            continue
        clone = rule.clone()
        if clone.children is not None:
            # set_nested may attach appended paths below this node
            clone.children = dict(clone.children)
        if path in optional:
            clone.required = False
        if path in required:
            clone.required = True
        effective[path] = clone

    for path, definition in overrides.append.items():
        effective[path] = merge_append_rule(definition)

    root = new_rule_tree()
    for path, rule in effective.items():
        set_nested(root, path, rule)
    return root

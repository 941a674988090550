"""Tests for the merge engine and change detector."""

from __future__ import annotations

from layerconf.core.contracts import MISSING
from layerconf.core.tree import assign, diff_trees, expand_dotted, lookup, merge_into, merge_trees


def test_higher_priority_tree_wins_on_conflicting_leaf() -> None:
    merged = merge_trees([{"x": "low", "only_low": 1}, {"x": "high"}])
    assert merged == {"x": "high", "only_low": 1}


def test_nested_merge_keeps_sibling_keys() -> None:
    merged = merge_trees([{"a": {"x": 1}}, {"a": {"y": 2}}])
    assert merged == {"a": {"x": 1, "y": 2}}


def test_tree_replaces_scalar_and_scalar_replaces_tree() -> None:
    assert merge_trees([{"a": 1}, {"a": {"b": 2}}]) == {"a": {"b": 2}}
    assert merge_trees([{"a": {"b": 2}}, {"a": 1}]) == {"a": 1}


def test_lists_are_replaced_wholesale() -> None:
    merged = merge_trees([{"tags": ["a", "b", "c"]}, {"tags": ["z"]}])
    assert merged == {"tags": ["z"]}


def test_merge_does_not_mutate_inputs() -> None:
    base = {"a": {"x": 1}}
    incoming = {"a": {"y": [1, 2]}}
    merged = merge_into(base, incoming)
    merged["a"]["y"].append(3)
    assert base == {"a": {"x": 1}}
    assert incoming == {"a": {"y": [1, 2]}}


def test_dotted_keys_are_expanded_into_nesting() -> None:
    assert expand_dotted({"db.host": "h", "db.port": 1}) == {"db": {"host": "h", "port": 1}}
    merged = merge_trees([{"db": {"host": "a", "user": "u"}}, {"db.host": "b"}])
    assert merged == {"db": {"host": "b", "user": "u"}}


def test_lookup_walks_dotted_paths() -> None:
    tree = {"server": {"port": 8080}, "name": "svc"}
    assert lookup(tree, "server.port") == 8080
    assert lookup(tree, "server.missing") is MISSING
    assert lookup(tree, "name.sub") is MISSING


def test_assign_replaces_scalar_with_tree() -> None:
    tree = {"server": "legacy"}
    assign(tree, "server.port", 9090)
    assert tree == {"server": {"port": 9090}}


def test_diff_reports_changed_leaf_only() -> None:
    changes = diff_trees({"server": {"port": 8080}}, {"server": {"port": 9090}})
    assert changes == {"server.port": 9090}


def test_diff_reports_removed_key_with_marker() -> None:
    assert diff_trees({"a": 1, "b": 2}, {"a": 1}) == {"b": MISSING}


def test_diff_reports_added_and_nested_removed_keys() -> None:
    old = {"db": {"host": "a", "port": 1}}
    new = {"db": {"host": "a"}, "cache": {"ttl": 5}}
    assert diff_trees(old, new) == {"db.port": MISSING, "cache": {"ttl": 5}}


def test_diff_treats_type_change_as_change() -> None:
    assert diff_trees({"flag": 1}, {"flag": True}) == {"flag": True}
    assert diff_trees({"a": {"b": 1}}, {"a": {"b": 1}}) == {}

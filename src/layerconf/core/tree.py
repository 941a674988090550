"""
Merge engine and change detector for configuration trees.

Trees are plain ``dict`` objects. Functions in this module never mutate
their inputs except :func:`assign`, which is the in-place writer used for
explicit overrides.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from .contracts import KEY_SEPARATOR, MISSING, ChangeSet, ConfigTree


def split_key(key: str) -> list[str]:
    """Split a dotted key into its path segments."""
    return key.split(KEY_SEPARATOR)


def join_key(prefix: str, key: str) -> str:
    return f"{prefix}{KEY_SEPARATOR}{key}" if prefix else key


def deep_copy(value: Any) -> Any:
    """Copy nested dicts and lists; scalars are returned as-is."""
    if isinstance(value, Mapping):
        return {key: deep_copy(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [deep_copy(item) for item in value]
    return copy.copy(value)


def lookup(tree: Mapping[str, Any], key: str) -> Any:
    """
    Resolve a dotted key against ``tree``.

    Returns :data:`MISSING` when a segment is absent or when the walk would
    have to descend through a non-tree value.
    """
    current: Any = tree
    for part in split_key(key):
        if not isinstance(current, Mapping) or part not in current:
            return MISSING
        current = current[part]
    return current


def assign(tree: ConfigTree, key: str, value: Any) -> None:
    """
    Write ``value`` at the dotted ``key`` in place.

    Intermediate segments that hold a scalar or list are replaced by a fresh
    nested tree.
    """
    parts = split_key(key)
    current = tree
    for part in parts[:-1]:
        nested = current.get(part)
        if not isinstance(nested, dict):
            nested = {}
            current[part] = nested
        current = nested
    current[parts[-1]] = value


def expand_dotted(tree: Mapping[str, Any]) -> ConfigTree:
    """Return a copy of ``tree`` where keys such as ``"a.b"`` become nesting."""
    result: ConfigTree = {}
    for key, value in tree.items():
        if isinstance(value, Mapping):
            value = expand_dotted(value)
        else:
            value = deep_copy(value)
        if KEY_SEPARATOR in key:
            existing = lookup(result, key)
            if isinstance(existing, dict) and isinstance(value, dict):
                value = merge_into(existing, value)
            assign(result, key, value)
        elif isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_into(result[key], value)
        else:
            result[key] = value
    return result


def merge_into(base: Mapping[str, Any], incoming: Mapping[str, Any]) -> ConfigTree:
    """
    Recursively merge ``incoming`` over ``base`` without mutating either.

    Two trees at the same key merge recursively; any other combination lets
    the incoming value replace the existing one wholesale (lists included).
    """
    result: ConfigTree = {key: deep_copy(value) for key, value in base.items()}
    for key, value in incoming.items():
        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            result[key] = merge_into(existing, value)
        else:
            result[key] = deep_copy(value)
    return result


def merge_trees(trees: Iterable[Mapping[str, Any]]) -> ConfigTree:
    """Fold ``trees`` in order; later trees take precedence."""
    merged: ConfigTree = {}
    for tree in trees:
        merged = merge_into(merged, expand_dotted(tree))
    return merged


def diff_trees(old: Mapping[str, Any], new: Mapping[str, Any], prefix: str = "") -> ChangeSet:
    """
    Compute the dotted paths that differ between ``old`` and ``new``.

    Added and changed keys map to their new value, removed keys map to
    :data:`MISSING`. When both sides hold a tree the walk recurses so only
    the altered leaves or branches are reported.
    """
    changes: ChangeSet = {}
    for key, new_value in new.items():
        path = join_key(prefix, key)
        if key not in old:
            changes[path] = deep_copy(new_value)
            continue
        old_value = old[key]
        if _equal(old_value, new_value):
            continue
        if isinstance(old_value, Mapping) and isinstance(new_value, Mapping):
            changes.update(diff_trees(old_value, new_value, path))
        else:
            changes[path] = deep_copy(new_value)
    for key in old:
        if key not in new:
            changes[join_key(prefix, key)] = MISSING
    return changes


def _equal(left: Any, right: Any) -> bool:
    # 1 == True and 1 == 1.0 in Python; a type change still counts as a change.
    if type(left) is not type(right):
        return False
    if isinstance(left, Mapping):
        return left.keys() == right.keys() and all(_equal(left[k], right[k]) for k in left)
    if isinstance(left, list | tuple):
        return len(left) == len(right) and all(_equal(a, b) for a, b in zip(left, right))
    return bool(left == right)


__all__ = [
    "assign",
    "deep_copy",
    "diff_trees",
    "expand_dotted",
    "join_key",
    "lookup",
    "merge_into",
    "merge_trees",
    "split_key",
]

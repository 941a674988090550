"""Static in-memory source."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..core.contracts import ConfigTree, Priority, Source
from ..core.tree import deep_copy


class MapSource(Source):
    """
    Wrap a caller-supplied tree.

    The tree is copied at construction and again on every load, so later
    changes to the caller's dictionary never leak into the store.
    """

    def __init__(
        self,
        values: Mapping[str, Any],
        name: str = "map",
        *,
        priority: int = Priority.MAP,
    ) -> None:
        super().__init__(priority=priority)
        self._values: ConfigTree = deep_copy(values)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def load(self) -> ConfigTree:
        return deep_copy(self._values)


__all__ = ["MapSource"]

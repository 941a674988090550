"""
Contracts shared by the configuration engine.

Sources produce plain nested dictionaries (``ConfigTree``). The store folds
them by priority, so every source exposes a ``name`` for diagnostics and an
integer ``priority`` where higher values override lower ones.
"""

from __future__ import annotations

import abc
import enum
from collections.abc import Awaitable, Callable
from typing import Any, Final, TypeAlias

ConfigTree: TypeAlias = dict[str, Any]
ChangeSet: TypeAlias = dict[str, Any]
Listener: TypeAlias = Callable[[str, Any], "None | Awaitable[None]"]

KEY_SEPARATOR: Final = "."


class _Missing:
    """Marker for keys that are absent from a tree."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


class Priority(enum.IntEnum):
    """Priority bands used by :class:`~layerconf.builder.ConfigBuilder`."""

    DEFAULTS = 10
    ENV = 20
    DOTENV = 25
    FILE = 30
    MAP = 40


class Source(abc.ABC):
    """
    Named, prioritized producer of a raw configuration tree.

    ``load`` must only read the source's own backing medium and return a
    fresh tree each call; failures are reported as
    :class:`~layerconf.core.errors.SourceLoadError`.
    """

    def __init__(self, *, priority: int) -> None:
        self._priority = int(priority)

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human readable identifier used in logs and errors."""

    @property
    def priority(self) -> int:
        return self._priority

    @abc.abstractmethod
    def load(self) -> ConfigTree:
        """Return the source's current tree."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, priority={self.priority})"


__all__ = [
    "KEY_SEPARATOR",
    "MISSING",
    "ChangeSet",
    "ConfigTree",
    "Listener",
    "Priority",
    "Source",
]

"""
Concurrency-guarded holder of the resolved configuration tree.

The store keeps the ordered source list, the merged tree and the change
listeners. Reads share a reader/writer lock; writes, incremental source
additions and full reloads take it exclusively. Listener notifications are
dispatched after the lock is released.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from .contracts import MISSING, ChangeSet, ConfigTree, Listener, Source
from .dispatch import DispatchHandle, ListenerDispatcher
from .errors import MissingEnvironmentError, SourceLoadError
from .tree import assign, deep_copy, diff_trees, lookup, merge_trees
from .value import ValueView, view

if TYPE_CHECKING:
    from .reload import ReloadScheduler

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Writer-preferring reader/writer lock."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ConfigStore:
    """Mutable configuration tree fed by prioritized sources."""

    def __init__(self, *, max_workers: int | None = None) -> None:
        self._values: ConfigTree = {}
        self._sources: list[Source] = []
        # Last tree loaded from each source, keyed by id(source).
        self._loaded: dict[int, ConfigTree] = {}
        # Runtime writes since the last full reload, replayed after refolds.
        self._overrides: list[tuple[str, Any]] = []
        self._lock = ReadWriteLock()
        self._dispatcher = ListenerDispatcher(max_workers=max_workers)
        self._required_env: dict[str, None] = {}
        self._scheduler: ReloadScheduler | None = None

    def __enter__(self) -> ConfigStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Reads

    def get(self, key: str = "") -> ValueView:
        """Return a view over ``key``; an empty key views the whole tree."""
        with self._lock.read():
            if not key:
                return view("", self._values)
            return view(key, lookup(self._values, key))

    def has(self, key: str) -> bool:
        with self._lock.read():
            return bool(key) and lookup(self._values, key) is not MISSING

    def all_settings(self) -> ConfigTree:
        """Deep copy of the resolved tree."""
        with self._lock.read():
            return deep_copy(self._values)

    @property
    def sources(self) -> tuple[Source, ...]:
        """Registered sources in application order (lowest priority first)."""
        with self._lock.read():
            return tuple(self._sources)

    def describe_sources(self) -> list[dict[str, Any]]:
        return [{"name": source.name, "priority": source.priority} for source in self.sources]

    # Writes

    def set(self, key: str, value: Any) -> DispatchHandle:
        """
        Override ``key`` directly in the live tree.

        The write bypasses source priorities and lasts until the next
        :meth:`load_all` recomputes the tree. Listeners are notified without
        waiting for them.
        """
        if not key:
            raise ValueError("configuration key must not be empty")
        stored = deep_copy(value)
        with self._lock.write():
            assign(self._values, key, stored)
            self._overrides.append((key, deep_copy(stored)))
        logger.debug("Set configuration key %s", key)
        return self._dispatcher.dispatch({key: deep_copy(stored)})

    def add_source(self, source: Source) -> ConfigStore:
        """
        Register ``source`` and fold its current tree into the live one.

        The live tree is rebuilt from the last tree of every registered
        source in priority order, so registration order never decides a
        conflict. Runtime writes made with :meth:`set` are replayed on top.

        Load failures are logged and absorbed so one broken optional source
        does not block startup; the source stays registered and takes part in
        every later :meth:`load_all`.
        """
        with self._lock.write():
            self._sources.append(source)
            self._sources.sort(key=lambda item: item.priority)
            try:
                data = source.load()
            except Exception as exc:
                logger.warning("Skipping initial load of source %s: %s", source.name, exc)
                return self
            self._loaded[id(source)] = data
            self._values = self._refold()
            logger.info(
                "Added configuration source %s (priority %d)", source.name, source.priority
            )
        return self

    def load_all(self) -> ChangeSet:
        """
        Rebuild the tree from every source and notify listeners of changes.

        Sources load sequentially in ascending priority. Any failure raises
        :class:`SourceLoadError` and leaves the current tree untouched.
        """
        with self._lock.write():
            loaded: dict[int, ConfigTree] = {}
            for source in self._sources:
                try:
                    loaded[id(source)] = source.load()
                except SourceLoadError:
                    raise
                except Exception as exc:
                    raise SourceLoadError(source.name, str(exc)) from exc
            resolved = merge_trees(loaded.values())
            changes = diff_trees(self._values, resolved)
            self._loaded = loaded
            self._overrides.clear()
            self._values = resolved
        if changes:
            logger.info("Configuration reloaded; %d key(s) changed", len(changes))
            self._dispatcher.dispatch(changes)
        else:
            logger.debug("Configuration reloaded; no changes")
        return changes

    def _refold(self) -> ConfigTree:
        trees = [self._loaded[id(s)] for s in self._sources if id(s) in self._loaded]
        resolved = merge_trees(trees)
        for key, value in self._overrides:
            assign(resolved, key, deep_copy(value))
        return resolved

    def require_env(self, *names: str) -> None:
        """
        Add ``names`` to the required environment variables and check them.

        Raises :class:`MissingEnvironmentError` listing every required name
        that is unset or empty in the process environment.
        """
        for name in names:
            self._required_env.setdefault(name, None)
        missing = [name for name in self._required_env if not os.environ.get(name)]
        if missing:
            raise MissingEnvironmentError(missing)

    @property
    def required_env(self) -> tuple[str, ...]:
        return tuple(self._required_env)

    # Listeners and lifecycle

    def add_listener(self, listener: Listener) -> None:
        """Register ``listener(key, value)`` for every future change."""
        self._dispatcher.add(listener)

    on_change = add_listener

    def attach_scheduler(self, scheduler: ReloadScheduler) -> None:
        if self._scheduler is not None and self._scheduler is not scheduler:
            raise RuntimeError("A reload scheduler is already attached to this store.")
        self._scheduler = scheduler

    @property
    def scheduler(self) -> ReloadScheduler | None:
        return self._scheduler

    def close(self) -> None:
        """Stop auto-reload and release the listener worker pool."""
        if self._scheduler is not None:
            self._scheduler.stop()
        self._dispatcher.close()


__all__ = ["ConfigStore", "ReadWriteLock"]

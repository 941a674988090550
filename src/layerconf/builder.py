"""
Fluent assembly of a :class:`~layerconf.core.store.ConfigStore`.

Sources get fixed priority bands so the builder call order does not matter:
defaults < environment < dotenv < settings files < explicit maps.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from .core.contracts import Listener, Priority, Source
from .core.reload import ReloadScheduler
from .core.store import ConfigStore
from .sources import DotEnvSource, EnvSource, FileSource, MapSource

logger = logging.getLogger(__name__)

Validator = Callable[[ConfigStore], Any]


class ConfigBuilder:
    """Collect sources and options, then :meth:`build` a ready store."""

    def __init__(self, *, max_workers: int | None = None) -> None:
        self._sources: list[Source] = []
        self._listeners: list[Listener] = []
        self._validators: list[Validator] = []
        self._required_env: list[str] = []
        self._reload_interval: float | None = None
        self._max_workers = max_workers

    def from_file(self, path: str | Path) -> ConfigBuilder:
        self._sources.append(FileSource(path, priority=Priority.FILE))
        return self

    def from_env(self, prefix: str = "") -> ConfigBuilder:
        self._sources.append(EnvSource(prefix, priority=Priority.ENV))
        return self

    def from_dotenv(self, path: str | Path) -> ConfigBuilder:
        self._sources.append(DotEnvSource(path, priority=Priority.DOTENV))
        return self

    def from_map(self, values: Mapping[str, Any], name: str = "map") -> ConfigBuilder:
        self._sources.append(MapSource(values, name, priority=Priority.MAP))
        return self

    def with_defaults(self, values: Mapping[str, Any]) -> ConfigBuilder:
        self._sources.append(MapSource(values, "defaults", priority=Priority.DEFAULTS))
        return self

    def with_source(self, source: Source) -> ConfigBuilder:
        """Add a custom source with its own priority."""
        self._sources.append(source)
        return self

    def with_auto_reload(self, interval: float | dt.timedelta) -> ConfigBuilder:
        """Reload every ``interval`` (seconds or timedelta) once built."""
        seconds = interval.total_seconds() if isinstance(interval, dt.timedelta) else interval
        if seconds <= 0:
            raise ValueError("reload interval must be positive")
        self._reload_interval = float(seconds)
        return self

    def with_on_change(self, hook: Listener) -> ConfigBuilder:
        self._listeners.append(hook)
        return self

    def with_validation(self, validator: Validator) -> ConfigBuilder:
        """
        Re-run ``validator(store)`` after every change.

        A validator signals failure by raising. Failures are logged only, the
        change that triggered them stays applied.
        """
        self._validators.append(validator)
        return self

    def require_env(self, *names: str) -> ConfigBuilder:
        self._required_env.extend(names)
        return self

    def build(self) -> ConfigStore:
        store = ConfigStore(max_workers=self._max_workers)
        for listener in self._listeners:
            store.add_listener(listener)
        for validator in self._validators:
            store.add_listener(_validation_listener(store, validator))
        if self._required_env:
            store.require_env(*self._required_env)
        for source in self._sources:
            store.add_source(source)
        for validator in self._validators:
            _run_validator(store, validator)
        if self._reload_interval is not None:
            scheduler = ReloadScheduler(store, self._reload_interval)
            store.attach_scheduler(scheduler)
            scheduler.start()
        return store


def _run_validator(store: ConfigStore, validator: Validator, key: str | None = None) -> None:
    try:
        validator(store)
    except Exception as exc:
        if key is None:
            logger.warning("Configuration validation error: %s", exc)
        else:
            logger.warning("Configuration validation error after change to %s: %s", key, exc)


def _validation_listener(store: ConfigStore, validator: Validator) -> Listener:
    def _on_change(key: str, value: Any) -> None:
        _run_validator(store, validator, key)

    return _on_change


__all__ = ["ConfigBuilder", "Validator"]

"""
Structured settings file source backed by Dynaconf.

Any format Dynaconf has a core loader for (YAML, TOML, JSON, INI) can be
used. Environment loading is switched off so the file is the only input;
the environment has its own source.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dynaconf import Dynaconf

from ..core.contracts import ConfigTree, Priority, Source
from ..core.errors import SourceLoadError

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".yaml", ".yml", ".toml", ".json", ".ini")


def _plain(value: Any) -> Any:
    """Convert Dynaconf boxes into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(item) for item in value]
    return value


class FileSource(Source):
    """Load a settings file on every call."""

    def __init__(
        self,
        path: str | Path,
        *,
        priority: int = Priority.FILE,
        settings: Dynaconf | None = None,
    ) -> None:
        super().__init__(priority=priority)
        self._path = Path(path)
        if self._path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ValueError(
                f"Unsupported settings file {self._path}; expected one of {SUPPORTED_SUFFIXES}"
            )
        self._settings = settings

    @property
    def name(self) -> str:
        return f"file({self._path})"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ConfigTree:
        if not self._path.is_file():
            raise SourceLoadError(self.name, f"settings file {self._path} does not exist")
        try:
            if self._settings is None:
                raw = self._fresh_settings().as_dict()
            else:
                self._settings.reload()
                raw = self._settings.as_dict()
        except Exception as exc:
            raise SourceLoadError(self.name, f"failed to parse settings file: {exc}") from exc
        # Dynaconf upper-cases top-level keys; nested keys keep their case.
        result: ConfigTree = {str(key).lower(): _plain(item) for key, item in raw.items()}
        logger.debug("Loaded %d top-level keys from %s", len(result), self._path)
        return result

    def _fresh_settings(self) -> Dynaconf:
        return Dynaconf(
            settings_files=[str(self._path.resolve())],
            environments=False,
            load_dotenv=False,
            loaders=[],
        )


__all__ = ["SUPPORTED_SUFFIXES", "FileSource"]

"""
Dotenv file source.

Grammar: one ``KEY=VALUE`` per line, blank lines and ``#`` comments ignored,
optional matching single or double quotes around the value. Keys are
lower-cased and underscores become dots, e.g. ``DB_HOST`` → ``db.host``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.contracts import ConfigTree, Priority, Source
from ..core.errors import DotEnvParseError, SourceLoadError
from .coerce import infer_scalar

logger = logging.getLogger(__name__)

DOTENV_BOOLEANS: dict[str, bool] = {"true": True, "false": False}


def _unquote(value: str) -> str:
    if len(value) > 1 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def parse_dotenv(text: str, *, path: str = "<string>") -> ConfigTree:
    """Parse dotenv ``text`` into a flat tree of dotted keys."""
    result: ConfigTree = {}
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, separator, value = line.partition("=")
        if not separator or not key.strip():
            raise DotEnvParseError(path, line_number, line)
        key = key.strip().lower().replace("_", ".")
        result[key] = infer_scalar(_unquote(value.strip()), DOTENV_BOOLEANS)
    return result


class DotEnvSource(Source):
    """Load a ``.env`` style file on every call."""

    def __init__(self, path: str | Path, *, priority: int = Priority.DOTENV) -> None:
        super().__init__(priority=priority)
        self._path = Path(path)

    @property
    def name(self) -> str:
        return f"dotenv({self._path})"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ConfigTree:
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceLoadError(self.name, f"failed to open .env file: {exc}") from exc
        result = parse_dotenv(text, path=str(self._path))
        logger.debug("Loaded %d keys from %s", len(result), self._path)
        return result


__all__ = ["DOTENV_BOOLEANS", "DotEnvSource", "parse_dotenv"]

"""
Exception hierarchy for the configuration engine.

Only loading, required-environment checks and struct decoding raise; the
typed accessors on :class:`~layerconf.core.value.ValueView` always fall back
to a default instead.
"""

from __future__ import annotations

from collections.abc import Iterable


class ConfigError(RuntimeError):
    """Base class for every configuration failure."""


class SourceLoadError(ConfigError):
    """Raised when a source cannot produce its tree."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"error loading from source {source}: {message}")
        self.source = source


class DotEnvParseError(SourceLoadError):
    """A dotenv line does not follow the ``KEY=VALUE`` grammar."""

    def __init__(self, path: str, line_number: int, line: str) -> None:
        super().__init__(f"dotenv({path})", f"invalid format at line {line_number}: {line}")
        self.path = path
        self.line_number = line_number
        self.line = line


class MissingEnvironmentError(ConfigError):
    """One or more required environment variables are unset or empty."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(
            "missing required environment variables: " + ", ".join(self.missing)
        )


class DecodeError(ConfigError):
    """A value could not be decoded into the requested structure."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"cannot decode {key or '<root>'}: {message}")
        self.key = key


__all__ = [
    "ConfigError",
    "DecodeError",
    "DotEnvParseError",
    "MissingEnvironmentError",
    "SourceLoadError",
]

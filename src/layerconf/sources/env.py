"""
Process environment source.

``SERVER_PORT=9090`` becomes ``{"server": {"port": 9090}}``: names are
lower-cased and every underscore opens one nesting level. A literal
underscore inside a leaf name cannot be told apart from a separator.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from ..core.contracts import ConfigTree, Priority, Source
from .coerce import infer_scalar

logger = logging.getLogger(__name__)

ENV_BOOLEANS: dict[str, bool] = {
    "true": True,
    "TRUE": True,
    "yes": True,
    "YES": True,
    "1": True,
    "false": False,
    "FALSE": False,
    "no": False,
    "NO": False,
    "0": False,
}


class EnvSource(Source):
    """Read variables from ``os.environ`` (or an injected mapping)."""

    def __init__(
        self,
        prefix: str = "",
        *,
        priority: int = Priority.ENV,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(priority=priority)
        self._prefix = prefix
        self._environ = environ

    @property
    def name(self) -> str:
        return f"env({self._prefix})"

    @property
    def prefix(self) -> str:
        return self._prefix

    def load(self) -> ConfigTree:
        environ = os.environ if self._environ is None else self._environ
        result: ConfigTree = {}
        for raw_key in sorted(environ):
            if self._prefix and not raw_key.startswith(self._prefix):
                continue
            key = raw_key[len(self._prefix) :].lower()
            parts = [part for part in key.split("_") if part]
            if not parts:
                continue
            current = result
            for part in parts[:-1]:
                nested = current.get(part)
                if not isinstance(nested, dict):
                    nested = {}
                    current[part] = nested
                current = nested
            current[parts[-1]] = infer_scalar(environ[raw_key], ENV_BOOLEANS)
        logger.debug("Environment source %s produced %d top-level keys", self.name, len(result))
        return result


__all__ = ["ENV_BOOLEANS", "EnvSource"]

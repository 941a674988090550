from __future__ import annotations

import textwrap
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from layerconf.core.contracts import ConfigTree, Source
from layerconf.core.errors import SourceLoadError
from layerconf.core.store import ConfigStore
from layerconf.core.tree import deep_copy


def write_text(path: Path, content: str) -> Path:
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")
    return path


class MutableSource(Source):
    """In-memory source whose tree can be swapped or broken between loads."""

    def __init__(self, values: ConfigTree, *, name: str = "mutable", priority: int = 10) -> None:
        super().__init__(priority=priority)
        self._name = name
        self.values = values
        self.error: str | None = None
        self.loads = 0

    @property
    def name(self) -> str:
        return self._name

    def load(self) -> ConfigTree:
        self.loads += 1
        if self.error is not None:
            raise SourceLoadError(self.name, self.error)
        return deep_copy(self.values)


class ListenerProbe:
    """Thread-safe recorder for change notifications."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._cond = threading.Condition()

    def __call__(self, key: str, value: Any) -> None:
        with self._cond:
            self.calls.append((key, value))
            self._cond.notify_all()

    def wait_for(self, count: int, timeout: float = 2.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.calls) >= count, timeout)

    def as_dict(self) -> dict[str, Any]:
        with self._cond:
            return dict(self.calls)


@pytest.fixture
def store() -> Iterator[ConfigStore]:
    config_store = ConfigStore()
    yield config_store
    config_store.close()


@pytest.fixture
def probe() -> ListenerProbe:
    return ListenerProbe()


@pytest.fixture
def sample_dotenv(tmp_path: Path) -> Path:
    """Provide a dotenv file covering comments, quoting and type inference."""

    return write_text(
        tmp_path / ".env",
        """
        # database settings
        DB_HOST=db.internal
        DB_PORT=5432

        DEBUG=true
        NAME="John Doe"
        GREETING='hello world'
        RATIO=0.75
        """,
    )


@pytest.fixture
def sample_yaml(tmp_path: Path) -> Path:
    return write_text(
        tmp_path / "settings.yaml",
        """
        server:
          host: "0.0.0.0"
          port: 8080
        features:
          - search
          - export
        """,
    )

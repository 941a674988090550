"""
Fire-and-forget delivery of configuration changes to listeners.

Each ``(listener, key, value)`` notification runs as its own job on a shared
worker pool, so listeners never block the store and there is no ordering
between them. Callers that need to observe completion (tests, mostly) can
wait on the :class:`DispatchHandle` returned for every batch.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Any

from .contracts import Listener

logger = logging.getLogger(__name__)


class DispatchHandle:
    """Completion tracker for one batch of listener notifications."""

    def __init__(self, futures: Iterable[Future[None]] = ()) -> None:
        self._futures = tuple(futures)

    def __len__(self) -> int:
        return len(self._futures)

    def done(self) -> bool:
        return all(future.done() for future in self._futures)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every notification finished; return ``False`` on timeout."""
        if not self._futures:
            return True
        _, pending = wait_futures(self._futures, timeout=timeout)
        return not pending

    @property
    def completed(self) -> int:
        return sum(1 for f in self._finished() if f.exception() is None)

    @property
    def failed(self) -> int:
        return sum(1 for f in self._finished() if f.exception() is not None)

    def _finished(self) -> list[Future[None]]:
        return [f for f in self._futures if f.done() and not f.cancelled()]


class ListenerDispatcher:
    """Append-only listener registry backed by a thread pool."""

    def __init__(self, *, max_workers: int | None = None) -> None:
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False

    def add(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)
        logger.debug("Registered configuration listener %s", listener)

    @property
    def listeners(self) -> tuple[Listener, ...]:
        with self._lock:
            return tuple(self._listeners)

    def dispatch(self, changes: Mapping[str, Any]) -> DispatchHandle:
        """Schedule every listener for every changed key and return immediately."""
        listeners = self.listeners
        if not listeners or not changes:
            return DispatchHandle()
        executor = self._ensure_executor()
        if executor is None:
            logger.debug("Dispatcher closed; dropping %d change(s)", len(changes))
            return DispatchHandle()
        futures: list[Future[None]] = []
        for key, value in changes.items():
            logger.debug("Dispatching change on %s to %d listeners", key, len(listeners))
            for listener in listeners:
                try:
                    future = executor.submit(self._call_listener, listener, key, value)
                except RuntimeError:
                    # close() shut the pool down after _ensure_executor returned it.
                    logger.debug("Dispatcher closed; dropping change on %s", key)
                    return DispatchHandle(futures)

                def _on_done(f: Future[None], _key: str = key) -> None:
                    if f.cancelled():
                        return
                    exc = f.exception()
                    if exc is not None:
                        logger.error(
                            "Configuration listener failed for key %s", _key, exc_info=exc
                        )

                future.add_done_callback(_on_done)
                futures.append(future)
        return DispatchHandle(futures)

    def close(self, *, wait: bool = True) -> None:
        """Shut down the worker pool; later dispatches are dropped."""
        with self._lock:
            self._closed = True
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def _ensure_executor(self) -> ThreadPoolExecutor | None:
        with self._lock:
            if self._closed:
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="layerconf-listener"
                )
            return self._executor

    @staticmethod
    def _call_listener(listener: Listener, key: str, value: Any) -> None:
        """
        Invoke a listener that may be sync or async. Coroutines are run to
        completion on the worker thread.
        """
        result = listener(key, value)
        if inspect.isawaitable(result):
            asyncio.run(_await(result))


async def _await(awaitable: Any) -> None:
    await awaitable


__all__ = ["DispatchHandle", "ListenerDispatcher"]

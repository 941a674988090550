"""
Background loop that periodically rebuilds a store from its sources.

The loop waits on a single-slot reload signal with the interval as timeout.
A timeout or a signal triggers :meth:`ConfigStore.load_all`, and the next
wait starts a fresh full interval, so manual and timed reloads never stack
up within the same period.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
import threading
from typing import TYPE_CHECKING

from .errors import ConfigError

if TYPE_CHECKING:
    from .store import ConfigStore

logger = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ReloadScheduler:
    """
    Timer and signal driven reload loop for one :class:`ConfigStore`.

    The scheduler is single-use: once stopped it cannot be restarted, a new
    instance has to be created instead.
    """

    def __init__(self, store: ConfigStore, interval: float | dt.timedelta) -> None:
        seconds = interval.total_seconds() if isinstance(interval, dt.timedelta) else interval
        if seconds <= 0:
            raise ValueError("reload interval must be positive")
        self._store = store
        self._interval = float(seconds)
        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self._signal = threading.Event()
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None
        self._reload_count = 0
        self._failure_count = 0
        self._cycle = threading.Condition()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def reload_count(self) -> int:
        """Number of completed reload attempts, failed ones included."""
        return self._reload_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def start(self) -> None:
        with self._state_lock:
            if self._state is not SchedulerState.IDLE:
                raise RuntimeError(f"Cannot start reload scheduler in state {self._state.value}.")
            self._state = SchedulerState.RUNNING
            self._thread = threading.Thread(
                target=self._run, name="layerconf-reload", daemon=True
            )
            self._thread.start()
        logger.info("Configuration auto-reload started (every %.3fs)", self._interval)

    def trigger(self) -> None:
        """Request a reload as soon as possible; bursts collapse into one."""
        if self._state is SchedulerState.RUNNING:
            self._signal.set()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the loop; an in-flight reload runs to completion first."""
        with self._state_lock:
            if self._state is SchedulerState.STOPPED:
                return
            previous, self._state = self._state, SchedulerState.STOPPED
            thread = self._thread
        self._stopping.set()
        self._signal.set()
        if previous is SchedulerState.RUNNING and thread is not None:
            if thread is not threading.current_thread():
                thread.join(timeout)
        logger.info("Configuration auto-reload stopped.")

    def wait_for_reloads(self, count: int, timeout: float | None = None) -> bool:
        """Block until at least ``count`` reload attempts have completed."""
        with self._cycle:
            return self._cycle.wait_for(lambda: self._reload_count >= count, timeout)

    def _run(self) -> None:
        while not self._stopping.is_set():
            signalled = self._signal.wait(self._interval)
            if self._stopping.is_set():
                break
            if signalled:
                self._signal.clear()
            self._reload_once()

    def _reload_once(self) -> None:
        try:
            self._store.load_all()
        except ConfigError:
            self._failure_count += 1
            logger.exception("Scheduled configuration reload failed; keeping previous values.")
        except Exception:  # pragma: no cover - keep the loop alive
            self._failure_count += 1
            logger.exception("Unexpected error during scheduled configuration reload.")
        with self._cycle:
            self._reload_count += 1
            self._cycle.notify_all()


__all__ = ["ReloadScheduler", "SchedulerState"]

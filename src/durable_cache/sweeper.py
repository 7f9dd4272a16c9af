"""
sweeper.py — Periodic background expiry sweep.

A Sweeper owns one daemon thread that calls a sweep function every
``interval`` until stopped. It is a one-shot state machine:

    IDLE --start()--> RUNNING --stop()--> STOPPED

stop() only signals the worker and returns; a sweep already in flight may
still finish afterwards. When a tick and the stop signal are due at the same
moment, the stop wins. Ticks that fall behind (slow sweeps) are dropped
rather than run back to back.

A failed sweep is logged and the loop carries on with the next tick.

Usage:
    sweeper = Sweeper(cache.delete_expired, interval=timedelta(seconds=30))
    sweeper.start()
    ...
    sweeper.stop()
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from enum import Enum
from typing import Any, Callable

import structlog

log = structlog.get_logger(__name__)


class SweeperState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Sweeper:
    """Runs *sweep* every *interval* on a background thread."""

    def __init__(
        self,
        sweep: Callable[[], Any],
        interval: timedelta,
        *,
        name: str = "durable-cache-sweeper",
    ) -> None:
        if interval <= timedelta(0):
            raise ValueError("sweep interval must be positive")
        self._sweep = sweep
        self._interval = interval.total_seconds()
        self._name = name
        self._stop = threading.Event()
        self._state = SweeperState.IDLE
        self._state_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> SweeperState:
        return self._state

    @property
    def interval(self) -> timedelta:
        return timedelta(seconds=self._interval)

    def start(self) -> None:
        with self._state_lock:
            if self._state is not SweeperState.IDLE:
                raise RuntimeError(f"cannot start a sweeper that is {self._state.value}")
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._state = SweeperState.RUNNING
            self._thread.start()
        log.info("sweeper_started", interval_s=self._interval)

    def stop(self) -> None:
        """Signal the worker to exit. Does not wait for it."""
        with self._state_lock:
            if self._state is SweeperState.STOPPED:
                return
            self._stop.set()
            self._state = SweeperState.STOPPED
        log.info("sweeper_stopped")

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker thread to exit. Returns True if it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        next_tick = time.monotonic() + self._interval
        while True:
            if self._stop.wait(max(0.0, next_tick - time.monotonic())):
                return
            try:
                self._sweep()
            except Exception:
                log.error("sweep_failed", exc_info=True)

            now = time.monotonic()
            next_tick += self._interval
            if next_tick <= now:
                skipped = int((now - next_tick) // self._interval) + 1
                next_tick += skipped * self._interval
                log.warning("sweep_ticks_dropped", count=skipped)

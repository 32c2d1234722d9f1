"""Timer abstraction for polling intervals and reconnect backoff.

Components never sleep or start threads for waiting themselves; they ask a
Scheduler for a one-shot or repeating callback and keep the returned handle so
they can cancel it. Tests substitute a manually advanced scheduler.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from .log import get_logger

_log = get_logger("timers")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, fn: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval: float, fn: Callable[[], None]) -> TimerHandle: ...


class _RepeatingTimer:
    """Daemon thread that runs ``fn`` every ``interval`` seconds until cancelled."""

    def __init__(self, interval: float, fn: Callable[[], None]) -> None:
        self.interval = interval
        self.fn = fn
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.fn()
            except Exception as e:
                _log.error("interval callback failed: %s", e, exc_info=True)

    def cancel(self) -> None:
        self._stopped.set()


class ThreadScheduler:
    """Scheduler backed by threading.Timer and daemon threads."""

    def call_later(self, delay: float, fn: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        timer.start()
        return timer

    def call_every(self, interval: float, fn: Callable[[], None]) -> TimerHandle:
        return _RepeatingTimer(interval, fn)

"""Shared fixtures: a manual scheduler and an in-memory store."""

from collections.abc import Callable

import pytest

from nudgebox.store import MemoryStore


class ManualTimer:
    def __init__(
        self,
        scheduler: "ManualScheduler",
        due: float,
        fn: Callable[[], None],
        interval: float | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.due = due
        self.fn = fn
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler fake: nothing runs until advance() moves the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, fn: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self, self.now + delay, fn)
        self.timers.append(timer)
        return timer

    def call_every(self, interval: float, fn: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self, self.now + interval, fn, interval=interval)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Run every timer due within the next ``seconds``, in due order."""
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            if timer.interval is None:
                timer.cancelled = True
            else:
                timer.due += timer.interval
            timer.fn()
        self.now = target


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()

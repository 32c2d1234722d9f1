"""Interval polling of reminder sources."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from ..dedup import Deduplicator
from ..errors import SourceFetchError
from ..log import get_logger
from ..models import NotificationItem
from ..timers import Scheduler, TimerHandle
from .due import DEFAULT_TRAILING_WINDOW_MINUTES, compute_due
from .sources import ReminderSource

_log = get_logger("reminders.poller")


def _now() -> datetime:
    return datetime.now().astimezone()


class ReminderPoller:
    """Polls each source on its own interval and hands new due items to ``sink``.

    A failing source is skipped for that cycle; the others carry on.
    """

    def __init__(
        self,
        sources: list[ReminderSource],
        dedup: Deduplicator,
        sink: Callable[[list[NotificationItem]], None],
        scheduler: Scheduler,
        user_id: str,
        show_all: bool = False,
        trailing_window_minutes: int = DEFAULT_TRAILING_WINDOW_MINUTES,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self.sources = sources
        self.dedup = dedup
        self.sink = sink
        self.scheduler = scheduler
        self.user_id = user_id
        self.show_all = show_all
        self.trailing_window_minutes = trailing_window_minutes
        self.clock = clock
        self._timers: list[TimerHandle] = []

    def collect(self, source: ReminderSource, now: datetime) -> list[NotificationItem]:
        """Fetch one source and return its due, not-yet-seen items."""
        try:
            candidates = source.fetch()
        except SourceFetchError as e:
            _log.warning("skipping %s this cycle: %s", source.kind, e)
            return []

        if not self.show_all:
            candidates = [c for c in candidates if c.is_relevant_to(self.user_id)]

        due = compute_due(
            candidates,
            now,
            default_window_minutes=source.reminder_minutes,
            trailing_window_minutes=self.trailing_window_minutes,
        )
        return [item for item in due if not self.dedup.is_seen(item.category, item.id)]

    def poll(self, sources: list[ReminderSource] | None = None) -> list[NotificationItem]:
        """Run one cycle over ``sources`` (default: all) and deliver the result."""
        now = self.clock()
        items: list[NotificationItem] = []
        for source in sources if sources is not None else self.sources:
            items.extend(self.collect(source, now))

        if items:
            _log.info("%d due reminder(s)", len(items))
            self.sink(items)
        return items

    def start(self) -> None:
        """Poll everything once, then keep polling each interval group."""
        if self._timers:
            return

        groups: dict[float, list[ReminderSource]] = {}
        for source in self.sources:
            groups.setdefault(source.interval, []).append(source)

        self._timers.append(self.scheduler.call_later(0, self.poll))
        for interval, sources in groups.items():
            self._timers.append(
                self.scheduler.call_every(interval, lambda s=sources: self.poll(s))
            )
        _log.info("polling started: %s", {k: [s.kind for s in v] for k, v in groups.items()})

    def stop(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers = []

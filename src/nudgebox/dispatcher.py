"""The single integration point for every notification producer.

Reminder polling and the push channel both end up in ``Dispatcher.ingest``.
Ingest runs under one lock, so the dedup check, the seen-set update, the
projection update and the history write of one batch never interleave with
another batch's.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from .dedup import Deduplicator
from .errors import PermissionDenied
from .history import NotificationHistoryStore
from .log import get_logger
from .models import NotificationItem
from .stream.routing import classify
from .stream.state import SubscriptionState
from .timers import Scheduler, TimerHandle

if TYPE_CHECKING:
    from .desktop import DesktopNotifier
    from .reminders.poller import ReminderPoller
    from .stream.client import EventStreamClient

PROJECTION_CAP = 50

_log = get_logger("dispatcher")


class Dispatcher:
    def __init__(
        self,
        user_id: str,
        history: NotificationHistoryStore,
        dedup: Deduplicator,
        scheduler: Scheduler,
        notifier: DesktopNotifier | None = None,
        attention: Callable[[], None] | None = None,
        on_open: Callable[[NotificationItem], Any] | None = None,
        stream: EventStreamClient | None = None,
        poller: ReminderPoller | None = None,
        projection_cap: int = PROJECTION_CAP,
    ) -> None:
        self.user_id = user_id
        self.history = history
        self.dedup = dedup
        self.scheduler = scheduler
        self.notifier = notifier
        self.attention = attention
        self.on_open = on_open
        self.stream = stream
        self.poller = poller
        self.projection_cap = projection_cap

        self._lock = threading.RLock()
        self._items: list[NotificationItem] = []
        self._listeners: list[Callable[[], None]] = []
        self._reconnect_timer: TimerHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._cleanups: list[Callable[[], Any]] = []
        self._stopped = False

    # --- Projection ---

    @property
    def items(self) -> list[NotificationItem]:
        with self._lock:
            return list(self._items)

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for item in self._items if not item.read)

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run (outside the lock) after every projection change."""
        self._listeners.append(callback)

    def _changed(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                _log.error("listener failed: %s", e, exc_info=True)

    def load(self) -> None:
        """Hydrate the projection from persisted history."""
        with self._lock:
            self._items = self.history.load(self.user_id)[: self.projection_cap]
            count = len(self._items)
        _log.info("loaded %d item(s) for %s", count, self.user_id)
        self._changed()

    # --- Ingest ---

    def ingest(self, raw_items: Iterable[NotificationItem]) -> list[NotificationItem]:
        """Deliver a batch. Returns the items that were new."""
        with self._lock:
            if self._stopped:
                return []

            survivors: list[NotificationItem] = []
            for item in raw_items:
                if self.dedup.is_seen(item.category, item.id):
                    continue
                self.dedup.mark_seen(item.category, item.id)
                survivors.append(item)

            if not survivors:
                return []

            self._items = (survivors + self._items)[: self.projection_cap]
            self.history.append_all(self.user_id, survivors)
            self._notify_platform(survivors[0])
            self._cue()

        _log.info("delivered %d item(s): %s", len(survivors), [i.id for i in survivors])
        self._changed()
        return survivors

    def handle_message(self, message: dict[str, Any]) -> None:
        """Push channel callback."""
        item = classify(message)
        if item is None:
            _log.debug("ignored message %s", message.get("type"))
            return
        self.ingest([item])

    def _notify_platform(self, item: NotificationItem) -> None:
        if self.notifier is None:
            return
        if not self.notifier.permission():
            _log.debug("desktop notifications unavailable, in-app only")
            return
        try:
            self.notifier.notify(
                item.title, item.message, tag=item.id, on_click=lambda: self._open(item)
            )
        except PermissionDenied as e:
            _log.debug("desktop notification denied: %s", e)

    def _cue(self) -> None:
        if self.attention is None:
            return
        try:
            self.attention()
        except Exception as e:
            _log.debug("attention cue failed: %s", e)

    # --- Acknowledgment ---

    def acknowledge(self, item_id: str) -> bool:
        """Mark one item read. Returns True if it was in the projection."""
        with self._lock:
            found = False
            for i, item in enumerate(self._items):
                if item.id == item_id:
                    self._items[i] = item.as_read()
                    found = True
            self.history.mark_read(self.user_id, item_id)
        if found:
            self._changed()
        return found

    def open(self, item_id: str) -> None:
        """Acknowledge an item and navigate to it."""
        with self._lock:
            item = next((i for i in self._items if i.id == item_id), None)
        if item is None:
            return
        self._open(item)

    def _open(self, item: NotificationItem) -> None:
        self.acknowledge(item.id)
        if self.on_open is not None:
            self.on_open(item)

    def mark_all_read(self) -> None:
        with self._lock:
            self._items = [item.as_read() for item in self._items]
            self.history.mark_all_read(self.user_id)
        self._changed()

    def clear(self) -> None:
        """Drop every item. Seen keys stay, so cleared items don't come back."""
        with self._lock:
            self._items = []
            self.history.clear(self.user_id)
        self._changed()

    # --- Lifecycle ---

    def start(self) -> None:
        """Subscribe to the push channel and start reminder polling."""
        with self._lock:
            self._stopped = False
        if self.stream is not None:
            self._unsubscribe = self.stream.subscribe(
                self.user_id, self.handle_message, self._on_terminate
            )
        if self.poller is not None:
            self.poller.start()

    def add_cleanup(self, callback: Callable[[], Any]) -> None:
        """Run `callback` once when the dispatcher stops."""
        with self._lock:
            self._cleanups.append(callback)

    def stop(self) -> None:
        """Tear everything down. Nothing is delivered after this returns."""
        with self._lock:
            self._stopped = True
            if self._reconnect_timer is not None:
                self._reconnect_timer.cancel()
                self._reconnect_timer = None
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            cleanups, self._cleanups = self._cleanups, []

        if unsubscribe is not None:
            unsubscribe()
        if self.poller is not None:
            self.poller.stop()
        for callback in cleanups:
            try:
                callback()
            except Exception:
                _log.warning("cleanup %r failed", callback, exc_info=True)
        _log.info("stopped for %s", self.user_id)

    def _on_terminate(self, error: Exception) -> None:
        with self._lock:
            if self._stopped or self.stream is None:
                return
            handle = self.stream.handle
            if handle.state != SubscriptionState.BACKOFF:
                _log.warning("giving up on push channel after %d failure(s)", handle.failures)
                return
            if self._reconnect_timer is not None:
                self._reconnect_timer.cancel()
            _log.info("reconnecting in %dms after: %s", handle.retry_delay_ms, error)
            self._reconnect_timer = self.scheduler.call_later(
                handle.retry_delay_ms / 1000, self._reconnect
            )

    def _reconnect(self) -> None:
        with self._lock:
            self._reconnect_timer = None
            if self._stopped or self.stream is None:
                return
            self.stream.reconnect()

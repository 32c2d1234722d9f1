"""Bounded per-user notification history, newest first."""

from __future__ import annotations

from collections.abc import Iterable

from .errors import PersistenceError
from .log import get_logger
from .models import NotificationItem
from .store import KeyValueStore, history_key

HISTORY_CAP = 200

_log = get_logger("history")


class NotificationHistoryStore:
    """Append log of delivered notifications, used to hydrate the UI on load.

    Reads and writes go straight to the store. A failed read is logged and
    treated as an empty history; updates that depend on a failed read are
    skipped rather than written over the stored list.
    """

    def __init__(self, store: KeyValueStore, cap: int = HISTORY_CAP) -> None:
        self.store = store
        self.cap = cap

    def _read(self, user_id: str) -> list[NotificationItem]:
        raw = self.store.get(history_key(user_id))
        if not isinstance(raw, list):
            return []

        items = []
        for entry in raw:
            try:
                items.append(NotificationItem.from_dict(entry))
            except (KeyError, TypeError) as e:
                _log.debug("skipping malformed history entry: %s", e)
        return items[: self.cap]

    def load(self, user_id: str) -> list[NotificationItem]:
        try:
            return self._read(user_id)
        except PersistenceError as e:
            _log.warning("could not load history for %s: %s", user_id, e)
            return []

    def _read_for_update(self, user_id: str, action: str) -> list[NotificationItem] | None:
        try:
            return self._read(user_id)
        except PersistenceError as e:
            _log.warning("skipping history %s for %s: %s", action, user_id, e)
            return None

    def _save(self, user_id: str, items: list[NotificationItem]) -> None:
        try:
            self.store.set(history_key(user_id), [item.to_dict() for item in items])
        except PersistenceError as e:
            _log.warning("could not persist history for %s: %s", user_id, e)

    def append(self, user_id: str, item: NotificationItem) -> None:
        self.append_all(user_id, [item])

    def append_all(self, user_id: str, items: Iterable[NotificationItem]) -> None:
        """Prepend a batch, keeping the batch's own order, then truncate to cap."""
        batch = list(items)
        if not batch:
            return
        current = self._read_for_update(user_id, "append")
        if current is None:
            return
        self._save(user_id, (batch + current)[: self.cap])

    def mark_read(self, user_id: str, item_id: str) -> bool:
        """Mark one item read. Returns True if the item was found and saved."""
        items = self._read_for_update(user_id, "mark_read")
        if items is None:
            return False
        found = False
        for i, item in enumerate(items):
            if item.id == item_id and not item.read:
                items[i] = item.as_read()
                found = True
        if found:
            self._save(user_id, items)
        return found

    def mark_all_read(self, user_id: str) -> None:
        items = self._read_for_update(user_id, "mark_all_read")
        if items is not None:
            self._save(user_id, [item.as_read() for item in items])

    def clear(self, user_id: str) -> None:
        self._save(user_id, [])

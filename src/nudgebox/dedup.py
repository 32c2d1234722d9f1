"""Bounded per-category seen-key sets.

One Deduplicator serves every category (calendar, meeting, document, activity).
Each category keeps an insertion-ordered set capped at ``cap`` keys; adding past
the cap drops the oldest keys first. Sets are loaded lazily from the store and
cached once a load succeeds. While the store cannot be read, keys marked in the
meantime are held in memory and merged into the stored set on the next good load.
"""

from __future__ import annotations

import threading

from .errors import PersistenceError
from .log import get_logger
from .store import KeyValueStore, seen_key

SEEN_CAP = 500

_log = get_logger("dedup")


class Deduplicator:
    def __init__(self, store: KeyValueStore, user_id: str, cap: int = SEEN_CAP) -> None:
        self.store = store
        self.user_id = user_id
        self.cap = cap
        # dict keeps insertion order; values are unused
        self._sets: dict[str, dict[str, None]] = {}
        self._pending: dict[str, dict[str, None]] = {}
        self._lock = threading.Lock()

    def _trim(self, seen: dict[str, None]) -> None:
        while len(seen) > self.cap:
            del seen[next(iter(seen))]

    def _persist(self, category: str, seen: dict[str, None]) -> None:
        try:
            self.store.set(seen_key(self.user_id, category), list(seen))
        except PersistenceError as e:
            _log.warning("could not persist seen set %s: %s", category, e)

    def _load(self, category: str) -> dict[str, None] | None:
        """The cached set, or None while the stored set cannot be read."""
        seen = self._sets.get(category)
        if seen is not None:
            return seen

        try:
            stored = self.store.get(seen_key(self.user_id, category))
        except PersistenceError as e:
            _log.warning("could not load seen set %s: %s", category, e)
            return None

        keys = stored if isinstance(stored, list) else []
        seen = dict.fromkeys(str(k) for k in keys)
        pending = self._pending.pop(category, None)
        if pending:
            seen.update(pending)
        self._trim(seen)
        self._sets[category] = seen
        if pending:
            _log.info("merged %d pending seen keys into %s", len(pending), category)
            self._persist(category, seen)
        return seen

    def is_seen(self, category: str, key: str) -> bool:
        with self._lock:
            seen = self._load(category)
            if seen is None:
                return key in self._pending.get(category, ())
            return key in seen

    def mark_seen(self, category: str, key: str) -> None:
        with self._lock:
            seen = self._load(category)
            if seen is None:
                pending = self._pending.setdefault(category, {})
                pending[key] = None
                self._trim(pending)
                return
            if key in seen:
                return
            seen[key] = None
            self._trim(seen)
            self._persist(category, seen)

    def keys(self, category: str) -> list[str]:
        """Seen keys for a category, oldest first."""
        with self._lock:
            seen = self._load(category)
            if seen is None:
                return list(self._pending.get(category, ()))
            return list(seen)

"""Per-user persisted state: key-value stores and their key layout."""

from .keys import history_key, seen_key
from .kv import KeyValueStore, MemoryStore, SqliteStore, connect

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "connect",
    "history_key",
    "seen_key",
]

"""Key-value persistence for history and seen sets."""

from __future__ import annotations

import json
import sqlite3
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

from ..errors import PersistenceError


class KeyValueStore(Protocol):
    """JSON values addressed by string keys (see ``store.keys``)."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store. Values are copied through JSON like the SQLite store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._updated: dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"cannot encode {key}: {e}") from e
        with self._lock:
            self._data[key] = raw
            self._updated[key] = time.time()

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._updated.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def updated_at(self, key: str) -> float | None:
        with self._lock:
            return self._updated.get(key)


def _init_schema(conn: sqlite3.Connection) -> None:
    """Initialize the baseline schema (version 0). Migrations bring it up to date."""
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
    """)
    conn.commit()


@contextmanager
def connect(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Context manager for database connections."""
    from . import migrations

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        _init_schema(conn)
        migrations.run_migrations(conn)
        yield conn
    finally:
        conn.close()


class SqliteStore:
    """File-backed store. Opens a connection per call so any thread may use it."""

    def __init__(self, db_path: Path | None = None) -> None:
        if db_path is None:
            from ..paths import get_db_path

            db_path = get_db_path()
        self.db_path = db_path

    def get(self, key: str) -> Any | None:
        try:
            with connect(self.db_path) as conn:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"read {key}: {e}") from e

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"corrupt value for {key}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"cannot encode {key}: {e}") from e

        try:
            with connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                   updated_at = excluded.updated_at
                    """,
                    (key, raw, time.time()),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with connect(self.db_path) as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"delete {key}: {e}") from e

    def updated_at(self, key: str) -> float | None:
        """When the key was last written, or None if unknown."""
        try:
            with connect(self.db_path) as conn:
                row = conn.execute("SELECT updated_at FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"read {key}: {e}") from e
        return row["updated_at"] if row else None

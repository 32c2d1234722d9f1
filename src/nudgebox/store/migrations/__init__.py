"""Schema migrations for the key-value store.

The schema version lives in SQLite's ``PRAGMA user_version``. Migrations are
the ``mNNN_*.py`` modules in this package; each defines ``VERSION``,
``DESCRIPTION`` and ``migrate(conn)``. Pending ones run in version order, each
committed together with its version bump.
"""

import importlib
import pkgutil
import sqlite3
from collections.abc import Callable
from typing import NamedTuple

from ...log import get_logger

_log = get_logger("store.migrations")


class Migration(NamedTuple):
    version: int
    description: str
    migrate: Callable[[sqlite3.Connection], None]


def get_current_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version").fetchone()[0]


def discover_migrations() -> list[Migration]:
    """All migration modules in this package, lowest version first."""
    found = []
    for info in pkgutil.iter_modules(__path__):
        if info.ispkg or not info.name.startswith("m"):
            continue
        module = importlib.import_module(f".{info.name}", __package__)
        if hasattr(module, "VERSION") and hasattr(module, "migrate"):
            found.append(
                Migration(module.VERSION, getattr(module, "DESCRIPTION", ""), module.migrate)
            )
    return sorted(found, key=lambda m: m.version)


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Bring the schema up to date. Returns what was applied, as "vN: description"."""
    current = get_current_version(conn)
    applied = []

    for migration in discover_migrations():
        if migration.version <= current:
            continue
        migration.migrate(conn)
        # PRAGMA doesn't take bound parameters
        conn.execute(f"PRAGMA user_version = {int(migration.version)}")
        conn.commit()
        applied.append(f"v{migration.version}: {migration.description}")
        _log.info("applied migration v%d: %s", migration.version, migration.description)

    return applied

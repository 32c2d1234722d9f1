"""Add updated_at column to the kv table.

Lets `nudgebox history list` show when a user's state was last written.
"""

import sqlite3

VERSION = 1
DESCRIPTION = "Add updated_at column to kv"


def migrate(conn: sqlite3.Connection) -> None:
    """Add updated_at with NULL default for existing rows."""
    conn.execute("ALTER TABLE kv ADD COLUMN updated_at REAL")

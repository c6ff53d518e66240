"""Database initialisation and migration helpers.

``init_db(conn)`` is idempotent and safe to call on an existing database.
``migrate(conn)`` runs incremental schema changes tracked in a version table.
"""

from __future__ import annotations

import sqlite3

from fairmap.config import settings


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes.

    Every DDL statement uses ``IF NOT EXISTS`` so calling this multiple times
    on the same database is safe.
    """
    sql = settings.schema_path.read_text(encoding="utf-8")
    # executescript() issues an implicit COMMIT first, fine for DDL only.
    conn.executescript(sql)
    _ensure_version_table(conn)
    migrate(conn)


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the internal schema-version tracking table if absent."""
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version  INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (CAST(strftime('%s', 'now') AS INTEGER))
            )
            """
        )


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version (0 if none)."""
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


# Version 1: triple ids switch from plain "-" joins to length-prefixed ids
# (see fairmap.core.graph.triple_id).
_LENGTH_PREFIXED_TRIPLE_IDS = """
UPDATE triples SET id =
    subject_kind || '-' || length(subject_id) || ':' || subject_id || '-' ||
    predicate || '-' ||
    object_kind || '-' || length(object_id) || ':' || object_id
"""

MIGRATIONS: list[tuple[int, str]] = [
    (1, _LENGTH_PREFIXED_TRIPLE_IDS),
]


def migrate(conn: sqlite3.Connection) -> None:
    """Apply any pending migrations.

    Add future migrations to the ``MIGRATIONS`` list above.
    """
    applied = current_version(conn)
    for version, sql in MIGRATIONS:
        if version > applied:
            with conn:
                conn.execute(sql)
                conn.execute(
                    "INSERT INTO schema_version(version) VALUES (?)", (version,)
                )

"""Storage backends.

Public re-exports so callers can write::

    from fairmap.db import get_connection, init_db, SqliteRepository
"""

from fairmap.db.connection import get_connection
from fairmap.db.memory import InMemoryRepository
from fairmap.db.migrations import init_db
from fairmap.db.repository import SqliteRepository

__all__ = ["get_connection", "init_db", "InMemoryRepository", "SqliteRepository"]

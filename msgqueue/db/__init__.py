"""
Database module.
Contains database connection, models, and SQL storage implementations.
"""

from msgqueue.db.connection import (
    close_db,
    create_session_factory,
    create_tables,
    get_engine,
    init_db,
    session_scope,
)
from msgqueue.db.models import Base, QueueEntry, QueueRecord
from msgqueue.db.repository import SqlMessageStore, SqlQueueDirectory, SqlStorage

__all__ = [
    "get_engine",
    "init_db",
    "close_db",
    "create_session_factory",
    "create_tables",
    "session_scope",
    "Base",
    "QueueEntry",
    "QueueRecord",
    "SqlMessageStore",
    "SqlQueueDirectory",
    "SqlStorage",
]

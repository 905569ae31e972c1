"""
SQLAlchemy database models.
Defines the queue directory and message store tables.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from msgqueue.constants import DEFAULT_VISIBILITY_TIMEOUT_SECONDS

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Keys must compare bytewise so that text order matches time order
KeyType = String(64).with_variant(String(64, collation="C"), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class QueueEntry(Base):
    """
    A queue listed in the directory.

    The directory is read only to check existence and to list queues;
    message delivery never touches this table.
    """

    __tablename__ = "queues"

    queue_id: Mapped[str] = mapped_column(
        KeyType,
        primary_key=True,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    visibility_timeout: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    )
    created_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"QueueEntry(queue_id={self.queue_id}, name={self.name})"


class QueueRecord(Base):
    """
    One record of a queue's ordered message store.

    Keys are message ids (visible messages), pop receipts (leased messages)
    or the reserved ``metadata`` and ``deleted`` keys. The composite primary
    key doubles as the ordered index used by range scans.
    """

    __tablename__ = "queue_messages"

    queue_id: Mapped[str] = mapped_column(
        KeyType,
        primary_key=True,
    )
    key: Mapped[str] = mapped_column(
        KeyType,
        primary_key=True,
    )
    record: Mapped[Any] = mapped_column(
        JSONType,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"QueueRecord(queue_id={self.queue_id}, key={self.key})"

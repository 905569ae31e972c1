"""
SQL repositories for queue storage.
Implements the message store and queue directory on SQLAlchemy async sessions.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import timezone
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from msgqueue.db.connection import session_scope
from msgqueue.db.models import QueueEntry, QueueRecord
from msgqueue.storage.base import (
    MessageStore,
    QueueDirectory,
    decode_cursor,
    encode_cursor,
)
from msgqueue.types.message import QueueMetadata

logger = logging.getLogger(__name__)

# Largest LIMIT every supported dialect binds as a 32-bit integer
MAX_SQL_LIMIT = 2**31 - 1


class SqlMessageStore(MessageStore):
    """
    Ordered message store for one queue, backed by the ``queue_messages`` table.

    Every call runs in its own transaction. ``apply`` writes and deletes in a
    single transaction so a re-keyed message is never visible under both keys.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queue_id: str,
    ):
        """
        Initialize the store.

        Args:
            session_factory: Factory for async database sessions.
            queue_id: The queue whose records this store addresses.
        """
        self._session_factory = session_factory
        self._queue_id = queue_id

    @property
    def queue_id(self) -> str:
        return self._queue_id

    def _key_filter(self, key: str):
        return (QueueRecord.queue_id == self._queue_id) & (QueueRecord.key == key)

    async def get(self, key: str) -> Any | None:
        async with session_scope(self._session_factory) as session:
            stmt = select(QueueRecord.record).where(self._key_filter(key))
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def put(self, key: str, record: Any) -> None:
        async with session_scope(self._session_factory) as session:
            await session.merge(
                QueueRecord(queue_id=self._queue_id, key=key, record=record)
            )

    async def delete(self, key: str) -> bool:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(
                delete(QueueRecord).where(self._key_filter(key))
            )
            return result.rowcount > 0

    async def scan(self, end: str, limit: int) -> list[tuple[str, Any]]:
        """
        Range scan in ascending key order.

        Args:
            end: Exclusive upper bound on keys.
            limit: Maximum number of records to return.

        Returns:
            List of (key, record) pairs.
        """
        async with session_scope(self._session_factory) as session:
            stmt = (
                select(QueueRecord.key, QueueRecord.record)
                .where(
                    QueueRecord.queue_id == self._queue_id,
                    QueueRecord.key < end,
                )
                .order_by(QueueRecord.key.asc())
                .limit(min(limit, MAX_SQL_LIMIT))
            )
            result = await session.execute(stmt)
            return [(row.key, row.record) for row in result.all()]

    async def list_all(self) -> dict[str, Any]:
        async with session_scope(self._session_factory) as session:
            stmt = (
                select(QueueRecord.key, QueueRecord.record)
                .where(QueueRecord.queue_id == self._queue_id)
                .order_by(QueueRecord.key.asc())
            )
            result = await session.execute(stmt)
            return {row.key: row.record for row in result.all()}

    async def delete_all(self) -> None:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(
                delete(QueueRecord).where(QueueRecord.queue_id == self._queue_id)
            )
            logger.info(
                "Deleted queue records",
                extra={"queue_id": self._queue_id, "count": result.rowcount},
            )

    async def apply(
        self,
        puts: Mapping[str, Any],
        deletes: Sequence[str] = (),
    ) -> None:
        """
        Apply writes then deletes in one transaction.

        Args:
            puts: Records to write, by key.
            deletes: Keys to delete after the writes.
        """
        async with session_scope(self._session_factory) as session:
            for key, record in puts.items():
                await session.merge(
                    QueueRecord(queue_id=self._queue_id, key=key, record=record)
                )
            # Merged rows must reach the database before the deletes run
            await session.flush()
            if deletes:
                await session.execute(
                    delete(QueueRecord).where(
                        QueueRecord.queue_id == self._queue_id,
                        QueueRecord.key.in_(list(deletes)),
                    )
                )

    async def count(self) -> int:
        """Number of records stored for the queue, reserved keys included."""
        async with session_scope(self._session_factory) as session:
            stmt = (
                select(func.count())
                .select_from(QueueRecord)
                .where(QueueRecord.queue_id == self._queue_id)
            )
            result = await session.execute(stmt)
            return result.scalar() or 0


class SqlStorage:
    """Creates per-queue SQL message stores sharing one session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def get_store(self, queue_id: str) -> SqlMessageStore:
        return SqlMessageStore(self._session_factory, queue_id)


def _entry_to_metadata(entry: QueueEntry) -> QueueMetadata:
    """Convert a QueueEntry row to QueueMetadata."""
    created_time = entry.created_time
    # SQLite drops the offset; stored values are always UTC
    if created_time.tzinfo is None:
        created_time = created_time.replace(tzinfo=timezone.utc)
    return QueueMetadata(
        queue_id=entry.queue_id,
        name=entry.name,
        visibility_timeout=entry.visibility_timeout,
        created_time=created_time,
    )


class SqlQueueDirectory(QueueDirectory):
    """Queue directory backed by the ``queues`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize the directory.

        Args:
            session_factory: Factory for async database sessions.
        """
        self._session_factory = session_factory

    async def put(self, queue_id: str, metadata: QueueMetadata) -> None:
        async with session_scope(self._session_factory) as session:
            await session.merge(
                QueueEntry(
                    queue_id=queue_id,
                    name=metadata.name,
                    visibility_timeout=metadata.visibility_timeout,
                    created_time=metadata.created_time,
                )
            )

    async def get(self, queue_id: str) -> QueueMetadata | None:
        async with session_scope(self._session_factory) as session:
            entry = await session.get(QueueEntry, queue_id)
            return _entry_to_metadata(entry) if entry is not None else None

    async def delete(self, queue_id: str) -> None:
        async with session_scope(self._session_factory) as session:
            await session.execute(
                delete(QueueEntry).where(QueueEntry.queue_id == queue_id)
            )

    async def list(
        self,
        prefix: str = "",
        cursor: str | None = None,
        limit: int = 1000,
    ) -> tuple[list[QueueMetadata], str | None]:
        """
        List one page of queues ordered by queue id.

        Args:
            prefix: Queue id prefix filter.
            cursor: Opaque cursor from a previous page.
            limit: Page size.

        Returns:
            Tuple of (entries, next_cursor).
        """
        filters = []
        if prefix:
            filters.append(QueueEntry.queue_id.startswith(prefix, autoescape=True))
        if cursor:
            filters.append(QueueEntry.queue_id > decode_cursor(cursor))

        # Fetch one extra row to learn whether another page exists
        stmt = (
            select(QueueEntry)
            .order_by(QueueEntry.queue_id.asc())
            .limit(min(limit, MAX_SQL_LIMIT - 1) + 1)
        )
        if filters:
            stmt = stmt.where(*filters)

        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            entries = list(result.scalars().all())

        page = entries[:limit]
        next_cursor = encode_cursor(page[-1].queue_id) if len(entries) > limit else None
        return [_entry_to_metadata(entry) for entry in page], next_cursor

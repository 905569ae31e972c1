"""
Unit tests for the SQL storage backends, run against SQLite.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from msgqueue.core.lifecycle import MessageLifecycleEngine
from msgqueue.db.repository import SqlMessageStore, SqlQueueDirectory, SqlStorage
from msgqueue.exceptions import InvalidRequestError
from msgqueue.ids import SortableIdGenerator
from msgqueue.types.message import QueueMetadata


def make_metadata(queue_id: str, name: str | None = None) -> QueueMetadata:
    return QueueMetadata(
        queue_id=queue_id,
        name=name,
        visibility_timeout=30,
        created_time=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def sql_store(sql_session_factory: async_sessionmaker[AsyncSession]) -> SqlMessageStore:
    return SqlStorage(sql_session_factory).get_store("queue-a")


class TestSqlMessageStore:
    """Tests for SqlMessageStore."""

    async def test_put_and_get(self, sql_store: SqlMessageStore):
        await sql_store.put("01A", {"message_body": "hello"})

        assert await sql_store.get("01A") == {"message_body": "hello"}
        assert await sql_store.get("01B") is None

    async def test_put_overwrites(self, sql_store: SqlMessageStore):
        await sql_store.put("01A", {"v": 1})
        await sql_store.put("01A", {"v": 2})

        assert await sql_store.get("01A") == {"v": 2}
        assert await sql_store.count() == 1

    async def test_delete(self, sql_store: SqlMessageStore):
        await sql_store.put("01A", {"v": 1})

        assert await sql_store.delete("01A") is True
        assert await sql_store.delete("01A") is False
        assert await sql_store.get("01A") is None

    async def test_scan_is_ordered_and_bounded(self, sql_store: SqlMessageStore):
        for key in ["01C", "01A", "01D", "01B"]:
            await sql_store.put(key, {"key": key})

        assert [key for key, _ in await sql_store.scan(end="01D", limit=10)] == ["01A", "01B", "01C"]
        assert [key for key, _ in await sql_store.scan(end="01D", limit=2)] == ["01A", "01B"]
        assert await sql_store.scan(end="01A", limit=10) == []

    async def test_scan_skips_reserved_keys(self, sql_store: SqlMessageStore):
        await sql_store.put("01A", {"key": "01A"})
        await sql_store.put("metadata", {"queue_id": "queue-a"})
        await sql_store.put("deleted", True)

        assert await sql_store.scan(end="7ZZZZZZZZZ", limit=10) == [("01A", {"key": "01A"})]

    async def test_apply_moves_records(self, sql_store: SqlMessageStore):
        await sql_store.put("01A", {"v": "a"})
        await sql_store.put("01B", {"v": "b"})

        await sql_store.apply({"05A": {"v": "a"}, "05B": {"v": "b"}}, ["01A", "01B"])

        assert await sql_store.list_all() == {"05A": {"v": "a"}, "05B": {"v": "b"}}

    async def test_queues_are_isolated(self, sql_session_factory: async_sessionmaker[AsyncSession]):
        storage = SqlStorage(sql_session_factory)
        first = storage.get_store("queue-a")
        second = storage.get_store("queue-b")
        await first.put("01A", {"queue": "a"})
        await second.put("01A", {"queue": "b"})

        await first.delete_all()

        assert await first.list_all() == {}
        assert await second.list_all() == {"01A": {"queue": "b"}}

    async def test_scan_accepts_unbounded_limit(self, sql_store: SqlMessageStore):
        await sql_store.put("01A", {"key": "01A"})

        assert await sql_store.scan(end="7ZZZZZZZZZ", limit=2**64) == [("01A", {"key": "01A"})]

    async def test_tombstone_round_trip(self, sql_store: SqlMessageStore):
        await sql_store.put("deleted", True)

        assert await sql_store.get("deleted") is True


class TestSqlQueueDirectory:
    """Tests for SqlQueueDirectory."""

    @pytest.fixture
    def directory(self, sql_session_factory: async_sessionmaker[AsyncSession]) -> SqlQueueDirectory:
        return SqlQueueDirectory(sql_session_factory)

    async def test_put_get_delete(self, directory: SqlQueueDirectory):
        await directory.put("Q1", make_metadata("Q1", name="orders"))

        metadata = await directory.get("Q1")
        assert metadata.queue_id == "Q1"
        assert metadata.name == "orders"
        assert metadata.visibility_timeout == 30

        await directory.delete("Q1")
        assert await directory.get("Q1") is None

    async def test_pagination(self, directory: SqlQueueDirectory):
        queue_ids = [f"Q{i}" for i in range(7)]
        for queue_id in reversed(queue_ids):
            await directory.put(queue_id, make_metadata(queue_id))

        seen: list[str] = []
        cursor = None
        pages = 0
        while True:
            entries, cursor = await directory.list(cursor=cursor, limit=3)
            seen.extend(entry.queue_id for entry in entries)
            pages += 1
            if cursor is None:
                break

        assert seen == queue_ids
        assert pages == 3

    async def test_prefix(self, directory: SqlQueueDirectory):
        for queue_id in ["alpha-1", "alpha-2", "beta-1", "alpha_x"]:
            await directory.put(queue_id, make_metadata(queue_id))

        entries, cursor = await directory.list(prefix="alpha-")

        assert [entry.queue_id for entry in entries] == ["alpha-1", "alpha-2"]
        assert cursor is None

    async def test_created_time_is_utc(self, directory: SqlQueueDirectory):
        await directory.put("Q1", make_metadata("Q1"))

        metadata = await directory.get("Q1")
        entries, _ = await directory.list()

        assert metadata.created_time == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert entries[0].created_time.tzinfo is not None

    async def test_list_with_huge_limit(self, directory: SqlQueueDirectory):
        await directory.put("Q1", make_metadata("Q1"))

        entries, cursor = await directory.list(limit=2**64)

        assert [entry.queue_id for entry in entries] == ["Q1"]
        assert cursor is None

    async def test_invalid_cursor(self, directory: SqlQueueDirectory):
        with pytest.raises(InvalidRequestError):
            await directory.list(cursor="not a cursor!")


class TestLifecycleOnSql:
    """The lifecycle engine behaves the same over the SQL store."""

    async def test_enqueue_lease_acknowledge(
        self,
        sql_store: SqlMessageStore,
        ids: SortableIdGenerator,
        clock,
        message_bodies: list[str],
    ):
        engine = MessageLifecycleEngine("queue-a", sql_store, ids)
        for body in message_bodies:
            await engine.enqueue(body)

        leased = await engine.lease(limit=2, visibility_timeout=30)
        assert [m.message_body for m in leased] == ["every", "good"]
        assert await sql_store.count() == 5

        rest = await engine.lease(limit=10, visibility_timeout=30)
        assert [m.message_body for m in rest] == ["boy", "does", "fine"]

        for message in leased + rest:
            await engine.acknowledge(message.message_id, message.pop_receipt)

        clock.advance(seconds=60)
        assert await engine.lease(limit=10) == []
        assert await sql_store.count() == 0

    async def test_lease_with_huge_limit(self, sql_store: SqlMessageStore, ids: SortableIdGenerator):
        engine = MessageLifecycleEngine("queue-a", sql_store, ids)
        await engine.enqueue("a")

        [message] = await engine.lease(limit=2**64)

        assert message.message_body == "a"

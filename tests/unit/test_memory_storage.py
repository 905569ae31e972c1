"""
Unit tests for the in-memory storage backends.
"""

from datetime import datetime, timezone

import pytest

from msgqueue.exceptions import InvalidRequestError
from msgqueue.storage.memory import (
    InMemoryMessageStore,
    InMemoryQueueDirectory,
    InMemoryStorage,
)
from msgqueue.types.message import QueueMetadata


def _metadata(queue_id: str) -> QueueMetadata:
    return QueueMetadata(
        queue_id=queue_id,
        name=f"queue {queue_id}",
        created_time=datetime.now(timezone.utc),
    )


class TestInMemoryMessageStore:
    """Tests for InMemoryMessageStore."""

    async def test_put_and_get(self, store: InMemoryMessageStore):
        await store.put("A", {"value": 1})

        assert await store.get("A") == {"value": 1}
        assert await store.get("B") is None

    async def test_put_replaces(self, store: InMemoryMessageStore):
        await store.put("A", {"value": 1})
        await store.put("A", {"value": 2})

        assert await store.get("A") == {"value": 2}
        assert len(store) == 1

    async def test_records_are_copied(self, store: InMemoryMessageStore):
        """Test that mutating a returned record does not change the store."""
        record = {"value": 1}
        await store.put("A", record)
        record["value"] = 99

        fetched = await store.get("A")
        fetched["value"] = 100

        assert await store.get("A") == {"value": 1}

    async def test_delete(self, store: InMemoryMessageStore):
        await store.put("A", 1)

        assert await store.delete("A") is True
        assert await store.delete("A") is False
        assert await store.list_all() == {}

    async def test_scan_orders_and_bounds(self, store: InMemoryMessageStore):
        """Test that scan returns ascending keys strictly below the bound."""
        for key in ["C", "A", "E", "B", "D"]:
            await store.put(key, key.lower())

        assert await store.scan(end="D", limit=10) == [("A", "a"), ("B", "b"), ("C", "c")]
        assert await store.scan(end="Z", limit=2) == [("A", "a"), ("B", "b")]
        assert await store.scan(end="A", limit=10) == []

    async def test_scan_skips_lowercase_reserved_keys(self, store: InMemoryMessageStore):
        await store.put("deleted", True)
        await store.put("metadata", {"queue_id": "q"})
        await store.put("01ARYZ6S41", "message")

        assert await store.scan(end="7ZZZZZZZZZ", limit=10) == [("01ARYZ6S41", "message")]

    async def test_apply_writes_then_deletes(self, store: InMemoryMessageStore):
        await store.put("A", "old")
        await store.put("B", "keep")

        await store.apply({"C": "new"}, ["A"])

        assert await store.list_all() == {"B": "keep", "C": "new"}

    async def test_list_all_is_ordered(self, store: InMemoryMessageStore):
        for key in ["b", "a", "c"]:
            await store.put(key, key)

        assert list((await store.list_all()).keys()) == ["a", "b", "c"]

    async def test_delete_all(self, store: InMemoryMessageStore):
        await store.apply({"A": 1, "B": 2})

        await store.delete_all()

        assert await store.list_all() == {}
        assert len(store) == 0


class TestInMemoryStorage:
    """Tests for InMemoryStorage."""

    def test_one_store_per_queue(self):
        storage = InMemoryStorage()

        assert storage.get_store("q1") is storage.get_store("q1")
        assert storage.get_store("q1") is not storage.get_store("q2")


class TestInMemoryQueueDirectory:
    """Tests for InMemoryQueueDirectory."""

    async def test_put_get_delete(self):
        directory = InMemoryQueueDirectory()
        await directory.put("q1", _metadata("q1"))

        assert (await directory.get("q1")).name == "queue q1"

        await directory.delete("q1")
        assert await directory.get("q1") is None

    async def test_delete_missing_is_noop(self):
        directory = InMemoryQueueDirectory()
        await directory.delete("missing")

    async def test_paginates_with_cursor(self):
        """Test that following cursors visits every queue exactly once."""
        directory = InMemoryQueueDirectory()
        queue_ids = [f"Q{i:02d}" for i in range(7)]
        for queue_id in reversed(queue_ids):
            await directory.put(queue_id, _metadata(queue_id))

        seen = []
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

    async def test_exact_page_has_no_cursor(self):
        directory = InMemoryQueueDirectory()
        for queue_id in ["A", "B", "C"]:
            await directory.put(queue_id, _metadata(queue_id))

        entries, cursor = await directory.list(limit=3)

        assert len(entries) == 3
        assert cursor is None

    async def test_prefix_filter(self):
        directory = InMemoryQueueDirectory()
        for queue_id in ["AA", "AB", "BA"]:
            await directory.put(queue_id, _metadata(queue_id))

        entries, _ = await directory.list(prefix="A")

        assert [entry.queue_id for entry in entries] == ["AA", "AB"]

    async def test_invalid_cursor(self):
        directory = InMemoryQueueDirectory()

        with pytest.raises(InvalidRequestError):
            await directory.list(cursor="not a cursor!")

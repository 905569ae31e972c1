"""
In-memory storage backends.

Suitable for a single process and for tests. Each operation completes
without yielding to the event loop, so batches are trivially atomic.
"""

import bisect
import copy
from collections.abc import Mapping, Sequence
from typing import Any

from msgqueue.storage.base import (
    MessageStore,
    QueueDirectory,
    decode_cursor,
    encode_cursor,
)
from msgqueue.types.message import QueueMetadata


class InMemoryMessageStore(MessageStore):
    """Ordered store keeping a sorted key list alongside a dict."""

    def __init__(self):
        self._keys: list[str] = []
        self._records: dict[str, Any] = {}

    def _insert(self, key: str, record: Any) -> None:
        if key not in self._records:
            bisect.insort(self._keys, key)
        # Copy so callers cannot mutate stored state
        self._records[key] = copy.deepcopy(record)

    def _remove(self, key: str) -> bool:
        if key not in self._records:
            return False
        del self._records[key]
        index = bisect.bisect_left(self._keys, key)
        del self._keys[index]
        return True

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._records.get(key))

    async def put(self, key: str, record: Any) -> None:
        self._insert(key, record)

    async def delete(self, key: str) -> bool:
        return self._remove(key)

    async def scan(self, end: str, limit: int) -> list[tuple[str, Any]]:
        stop = min(bisect.bisect_left(self._keys, end), max(limit, 0))
        return [
            (key, copy.deepcopy(self._records[key])) for key in self._keys[:stop]
        ]

    async def list_all(self) -> dict[str, Any]:
        return {key: copy.deepcopy(self._records[key]) for key in self._keys}

    async def delete_all(self) -> None:
        self._keys.clear()
        self._records.clear()

    async def apply(
        self,
        puts: Mapping[str, Any],
        deletes: Sequence[str] = (),
    ) -> None:
        for key, record in puts.items():
            self._insert(key, record)
        for key in deletes:
            self._remove(key)

    def __len__(self) -> int:
        return len(self._keys)


class InMemoryStorage:
    """
    Holds one message store per queue.

    Stores outlive the actors that use them, mirroring a durable backend.
    """

    def __init__(self):
        self._stores: dict[str, InMemoryMessageStore] = {}

    def get_store(self, queue_id: str) -> InMemoryMessageStore:
        if queue_id not in self._stores:
            self._stores[queue_id] = InMemoryMessageStore()
        return self._stores[queue_id]


class InMemoryQueueDirectory(QueueDirectory):
    """Queue listing held in a dict."""

    def __init__(self):
        self._queues: dict[str, QueueMetadata] = {}

    async def put(self, queue_id: str, metadata: QueueMetadata) -> None:
        self._queues[queue_id] = metadata.model_copy()

    async def get(self, queue_id: str) -> QueueMetadata | None:
        metadata = self._queues.get(queue_id)
        return metadata.model_copy() if metadata is not None else None

    async def delete(self, queue_id: str) -> None:
        self._queues.pop(queue_id, None)

    async def list(
        self,
        prefix: str = "",
        cursor: str | None = None,
        limit: int = 1000,
    ) -> tuple[list[QueueMetadata], str | None]:
        after = decode_cursor(cursor) if cursor else None
        matching = sorted(
            queue_id
            for queue_id in self._queues
            if queue_id.startswith(prefix) and (after is None or queue_id > after)
        )

        page = matching[:limit]
        next_cursor = encode_cursor(page[-1]) if len(matching) > limit else None
        return [self._queues[queue_id].model_copy() for queue_id in page], next_cursor

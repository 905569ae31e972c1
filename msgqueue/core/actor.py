"""
Single-writer execution context for one queue.

A QueueActor owns a queue's message store and lifecycle engine and runs
every operation on them one at a time, in arrival order. A lease's
scan-rewrite-delete sequence therefore never interleaves with another lease,
an acknowledgement, or the queue's deletion.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from msgqueue.constants import METADATA_KEY, TOMBSTONE_KEY
from msgqueue.core.lifecycle import MessageLifecycleEngine
from msgqueue.exceptions import QueueNotFoundError
from msgqueue.ids import SortableIdGenerator
from msgqueue.storage.base import MessageStore
from msgqueue.types.message import MessageMetadata, PoppedMessage, QueueMetadata, QueueStats

logger = logging.getLogger(__name__)


class QueueActor:
    """
    Serialises all operations against one queue.

    The first operation loads the queue's tombstone and metadata from the
    store before doing anything else. Once the tombstone is set every
    operation fails with QueueNotFoundError, including operations that were
    waiting for their turn when the deletion ran.
    """

    def __init__(
        self,
        queue_id: str,
        store: MessageStore,
        ids: SortableIdGenerator | None = None,
    ):
        """
        Initialize the actor.

        Args:
            queue_id: The queue this actor owns.
            store: The queue's message store. No other actor may use it.
            ids: Identifier generator for the queue's messages.
        """
        self.queue_id = queue_id
        self._store = store
        self._engine = MessageLifecycleEngine(queue_id, store, ids)
        # asyncio.Lock wakes waiters in FIFO order and does not let new
        # callers overtake them
        self._lock = asyncio.Lock()
        self._loaded = False
        self._deleted = False
        self._metadata: QueueMetadata | None = None

    @property
    def deleted(self) -> bool:
        return self._deleted

    @property
    def busy(self) -> bool:
        """True while an operation runs or waits for its turn."""
        return self._lock.locked()

    async def _load(self) -> None:
        if self._loaded:
            return
        self._deleted = bool(await self._store.get(TOMBSTONE_KEY))
        record = await self._store.get(METADATA_KEY)
        if record is not None:
            self._metadata = QueueMetadata.model_validate(record)
        self._loaded = True

    @asynccontextmanager
    async def _turn(self, require_queue: bool = True) -> AsyncIterator[None]:
        """Wait for exclusive access, then check the queue is still live."""
        async with self._lock:
            await self._load()
            if self._deleted:
                raise QueueNotFoundError(self.queue_id)
            if require_queue and self._metadata is None:
                raise QueueNotFoundError(self.queue_id)
            yield

    async def create(self, metadata: QueueMetadata) -> QueueMetadata:
        """
        Persist the queue's metadata.

        Creating a queue that already exists returns the existing metadata.

        Args:
            metadata: The new queue's metadata.

        Returns:
            The queue's metadata.
        """
        async with self._turn(require_queue=False):
            if self._metadata is not None:
                return self._metadata
            await self._store.put(METADATA_KEY, metadata.model_dump(mode="json"))
            self._metadata = metadata
            return metadata

    async def describe(self) -> QueueMetadata:
        """Return the queue's metadata."""
        async with self._turn():
            return self._metadata

    async def enqueue(self, message_body: str | None) -> MessageMetadata:
        async with self._turn():
            return await self._engine.enqueue(message_body)

    async def lease(
        self,
        limit: int = 1,
        visibility_timeout: int | None = None,
    ) -> list[PoppedMessage]:
        """
        Lease ready messages.

        Args:
            limit: Maximum number of messages.
            visibility_timeout: Seconds to hide them. Defaults to the queue's
                own visibility timeout.
        """
        async with self._turn():
            if visibility_timeout is None:
                visibility_timeout = self._metadata.visibility_timeout
            return await self._engine.lease(limit, visibility_timeout)

    async def acknowledge(self, message_id: str | None, pop_receipt: str | None) -> None:
        async with self._turn():
            await self._engine.acknowledge(message_id, pop_receipt)

    async def stats(self) -> QueueStats:
        async with self._turn():
            return await self._engine.stats()

    async def delete(self) -> None:
        """
        Irreversibly delete the queue.

        Clears every record, then durably writes the tombstone, then flips
        the in-memory flag. Operations already holding or ahead in the turn
        order complete against live state; the rest see the tombstone.
        """
        async with self._turn(require_queue=False):
            await self._engine.clear()
            await self._store.put(TOMBSTONE_KEY, True)
            self._deleted = True
            self._metadata = None

        logger.info("Queue deleted", extra={"queue_id": self.queue_id})

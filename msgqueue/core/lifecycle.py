"""
Message lifecycle engine.

A message's visibility is encoded in its storage key rather than in a status
column:

- A visible message lives under its ``message_id``, whose time prefix is the
  moment it was enqueued (always in the past).
- A leased message lives under its ``pop_receipt``, whose time prefix is the
  moment its lease expires.

Scanning keys up to "now" therefore yields exactly the messages that are
ready, oldest first, and leasing a message is a move to a key in the future.
The engine assumes its caller serialises operations (see ``QueueActor``).
"""

import logging
from datetime import datetime, timezone
from typing import Any

from msgqueue.constants import (
    DEFAULT_LEASE_LIMIT,
    DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    MessageState,
)
from msgqueue.exceptions import InvalidRequestError
from msgqueue.ids import SortableIdGenerator, decode_time, encode_time
from msgqueue.storage.base import MessageStore
from msgqueue.types.message import Message, MessageMetadata, PoppedMessage, QueueStats

logger = logging.getLogger(__name__)


def _is_message_record(record: Any) -> bool:
    return isinstance(record, dict) and "message_id" in record


def message_state(key: str, record: dict[str, Any], now_ms: int) -> MessageState:
    """Classify a stored message record by its key at time ``now_ms``."""
    if "pop_receipt" in record and decode_time(key) > now_ms:
        return MessageState.LEASED
    return MessageState.VISIBLE


class MessageLifecycleEngine:
    """
    Enqueue, lease, and acknowledge messages of a single queue.

    Implements the message state machine:
    - enqueue: -> VISIBLE (stored under message_id)
    - lease: VISIBLE -> LEASED (moved to a fresh pop_receipt key)
    - lease after expiry: LEASED -> LEASED (moved to another pop_receipt key)
    - acknowledge: LEASED -> DELETED (requires the current pop_receipt)
    """

    def __init__(
        self,
        queue_id: str,
        store: MessageStore,
        ids: SortableIdGenerator | None = None,
    ):
        """
        Initialize the engine.

        Args:
            queue_id: The queue this engine serves.
            store: The queue's ordered message store.
            ids: Identifier generator for message ids and pop receipts.
        """
        self.queue_id = queue_id
        self._store = store
        self._ids = ids or SortableIdGenerator()

    def _ready_bound(self, now_ms: int) -> str:
        # Exclusive bound: keys stamped at or before now_ms sort below it
        return encode_time(now_ms + 1)

    async def enqueue(self, message_body: str | None) -> MessageMetadata:
        """
        Add a visible message to the queue.

        Args:
            message_body: The message content. Must not be empty.

        Returns:
            MessageMetadata identifying the new message.

        Raises:
            InvalidRequestError: If the body is missing or empty.
        """
        if not message_body:
            raise InvalidRequestError("message_body is required")

        now_ms = self._ids.now()
        metadata = MessageMetadata(
            message_id=self._ids.next(now_ms),
            queue_id=self.queue_id,
            inserted_time=datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc),
        )
        message = Message(**metadata.model_dump(), message_body=message_body)

        await self._store.put(message.message_id, message.model_dump(mode="json"))

        logger.debug(
            "Enqueued message",
            extra={"queue_id": self.queue_id, "message_id": message.message_id},
        )
        return metadata

    async def lease(
        self,
        limit: int = DEFAULT_LEASE_LIMIT,
        visibility_timeout: int = DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    ) -> list[PoppedMessage]:
        """
        Lease up to ``limit`` ready messages, oldest ready first.

        Each leased message moves to a new key stamped with the time its
        lease expires, which hides it from later leases until then. All
        moves are applied as one batch.

        Args:
            limit: Maximum number of messages to lease.
            visibility_timeout: Seconds the messages stay hidden.

        Returns:
            The leased messages, each carrying its new pop receipt.
            Empty if nothing is ready.

        Raises:
            InvalidRequestError: If limit < 1 or visibility_timeout < 0.
        """
        if limit < 1:
            raise InvalidRequestError("limit must be at least 1")
        if visibility_timeout < 0:
            raise InvalidRequestError("visibility_timeout must not be negative")

        now_ms = self._ids.now()
        ready = await self._store.scan(end=self._ready_bound(now_ms), limit=limit)

        invisible_until = now_ms + visibility_timeout * 1000
        puts: dict[str, Any] = {}
        leased: list[PoppedMessage] = []

        for _key, record in ready:
            message = Message.model_validate(record)
            pop_receipt = self._ids.next(invisible_until)
            popped = PoppedMessage(
                **message.model_dump(),
                pop_receipt=pop_receipt,
                visibility_timeout=visibility_timeout,
            )
            puts[pop_receipt] = popped.model_dump(mode="json")
            leased.append(popped)

        if leased:
            await self._store.apply(puts, [key for key, _record in ready])
            logger.debug(
                "Leased messages",
                extra={
                    "queue_id": self.queue_id,
                    "count": len(leased),
                    "visibility_timeout": visibility_timeout,
                },
            )

        return leased

    async def acknowledge(self, message_id: str | None, pop_receipt: str | None) -> None:
        """
        Permanently delete a leased message.

        Succeeds only when the record stored under ``pop_receipt`` is a
        leased message with this ``message_id``. Anything else (stale
        receipt, wrong message, never-leased message, already deleted)
        changes nothing.

        Args:
            message_id: The message to delete.
            pop_receipt: The receipt returned by the message's latest lease.

        Raises:
            InvalidRequestError: If either argument is missing or they do not
                identify the message's current lease.
        """
        if not message_id or not pop_receipt:
            raise InvalidRequestError("message_id and pop_receipt are required")

        record = await self._store.get(pop_receipt)
        if (
            not _is_message_record(record)
            or record.get("message_id") != message_id
            or record.get("pop_receipt") != pop_receipt
        ):
            logger.warning(
                "Rejected acknowledgement",
                extra={
                    "queue_id": self.queue_id,
                    "message_id": message_id,
                    "pop_receipt": pop_receipt,
                },
            )
            raise InvalidRequestError("Invalid message_id or pop_receipt")

        await self._store.delete(pop_receipt)
        logger.debug(
            "Acknowledged message",
            extra={"queue_id": self.queue_id, "message_id": message_id},
        )

    async def stats(self) -> QueueStats:
        """
        Count visible and in-flight messages.

        Walks every record, so it is meant for administration rather than
        the delivery path.
        """
        now_ms = self._ids.now()
        visible = in_flight = 0

        for key, record in (await self._store.list_all()).items():
            if not _is_message_record(record):
                continue
            if message_state(key, record, now_ms) is MessageState.LEASED:
                in_flight += 1
            else:
                visible += 1

        return QueueStats(queue_id=self.queue_id, visible=visible, in_flight=in_flight)

    async def clear(self) -> None:
        """Delete every record of the queue."""
        await self._store.delete_all()

"""
Queue service.

Entry point for every client-visible operation. Checks queue existence in
the directory, then hands the request to the queue's actor.
"""

import logging
from datetime import datetime, timezone

from msgqueue.config import Settings, get_settings
from msgqueue.constants import (
    DEFAULT_LEASE_LIMIT,
    SPAN_ACKNOWLEDGE,
    SPAN_DELETE_QUEUE,
    SPAN_ENQUEUE,
    SPAN_LEASE,
)
from msgqueue.core.actor import QueueActor
from msgqueue.core.registry import ActorRegistry
from msgqueue.exceptions import InvalidRequestError, QueueNotFoundError
from msgqueue.ids import SortableIdGenerator
from msgqueue.observability.metrics import MetricsCollector, get_metrics
from msgqueue.observability.tracing import queue_span
from msgqueue.storage.base import QueueDirectory
from msgqueue.types.api import ListQueuesResponse
from msgqueue.types.message import MessageMetadata, PoppedMessage, QueueMetadata, QueueStats

logger = logging.getLogger(__name__)


class QueueService:
    """
    Queue and message operations.

    The directory answers "does this queue exist" and "which queues exist";
    the actor registry routes everything else to the one actor owning the
    queue's messages.
    """

    def __init__(
        self,
        directory: QueueDirectory,
        registry: ActorRegistry,
        settings: Settings | None = None,
        ids: SortableIdGenerator | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the service.

        Args:
            directory: Listing of all queues.
            registry: Routing table from queue id to actor.
            settings: Application settings.
            ids: Generator for new queue ids.
            metrics: Metrics collector.
        """
        self._directory = directory
        self._registry = registry
        self._settings = settings or get_settings()
        self._ids = ids or SortableIdGenerator()
        self._metrics = metrics or get_metrics()

    def _check_visibility_timeout(self, visibility_timeout: int) -> None:
        maximum = self._settings.max_visibility_timeout
        if visibility_timeout < 0 or visibility_timeout > maximum:
            raise InvalidRequestError(
                f"visibility_timeout must be between 0 and {maximum} seconds"
            )

    @property
    def loaded_queues(self) -> int:
        """Number of queue actors held in memory."""
        return len(self._registry)

    async def _actor(self, queue_id: str) -> QueueActor:
        if await self._directory.get(queue_id) is None:
            raise QueueNotFoundError(queue_id)
        return self._registry.get(queue_id)

    async def create_queue(
        self,
        name: str | None = None,
        visibility_timeout: int | None = None,
    ) -> QueueMetadata:
        """
        Create a new queue.

        Args:
            name: Optional display name.
            visibility_timeout: Default lease duration in seconds.

        Returns:
            The new queue's metadata.

        Raises:
            InvalidRequestError: If the visibility timeout is out of range.
        """
        if visibility_timeout is None:
            visibility_timeout = self._settings.default_visibility_timeout
        self._check_visibility_timeout(visibility_timeout)

        queue_id = self._ids.next()
        metadata = QueueMetadata(
            queue_id=queue_id,
            name=name,
            visibility_timeout=visibility_timeout,
            created_time=datetime.now(timezone.utc),
        )

        metadata = await self._registry.get(queue_id).create(metadata)
        await self._directory.put(queue_id, metadata)

        self._metrics.record_queue_created()
        logger.info(
            "Created queue",
            extra={"queue_id": queue_id, "queue_name": name},
        )
        return metadata

    async def list_queues(
        self,
        cursor: str | None = None,
        prefix: str = "",
    ) -> ListQueuesResponse:
        """
        List one page of queues.

        Args:
            cursor: Cursor returned with the previous page.
            prefix: Queue id prefix filter.

        Returns:
            ListQueuesResponse with the page and the next cursor, if any.
        """
        queues, next_cursor = await self._directory.list(
            prefix=prefix,
            cursor=cursor,
            limit=self._settings.list_page_size,
        )
        return ListQueuesResponse(queues=queues, cursor=next_cursor)

    async def require_queue(self, queue_id: str) -> None:
        """
        Check that a queue exists.

        Raises:
            QueueNotFoundError: If the queue does not exist.
        """
        await self._actor(queue_id)

    async def get_queue(self, queue_id: str) -> QueueMetadata:
        actor = await self._actor(queue_id)
        return await actor.describe()

    async def delete_queue(self, queue_id: str) -> None:
        """
        Delete a queue and all of its messages.

        Raises:
            QueueNotFoundError: If the queue does not exist.
        """
        actor = await self._actor(queue_id)

        with queue_span(SPAN_DELETE_QUEUE, queue_id):
            await actor.delete()

        await self._directory.delete(queue_id)
        self._registry.evict(queue_id)
        self._metrics.record_queue_deleted()

    async def enqueue(self, queue_id: str, message_body: str | None) -> MessageMetadata:
        """
        Add a message to a queue.

        Raises:
            InvalidRequestError: If the body is empty.
            QueueNotFoundError: If the queue does not exist.
        """
        actor = await self._actor(queue_id)

        with queue_span(SPAN_ENQUEUE, queue_id) as span:
            metadata = await actor.enqueue(message_body)
            span.set_attribute("message_id", metadata.message_id)

        self._metrics.record_messages_enqueued()
        return metadata

    async def lease(
        self,
        queue_id: str,
        limit: int = DEFAULT_LEASE_LIMIT,
        visibility_timeout: int | None = None,
    ) -> list[PoppedMessage]:
        """
        Lease ready messages from a queue.

        Args:
            queue_id: The queue.
            limit: Maximum number of messages.
            visibility_timeout: Override of the queue's visibility timeout.

        Returns:
            The leased messages.
        """
        actor = await self._actor(queue_id)
        if visibility_timeout is not None:
            self._check_visibility_timeout(visibility_timeout)

        with queue_span(
            SPAN_LEASE,
            queue_id,
            limit=limit,
            visibility_timeout=visibility_timeout,
        ) as span:
            messages = await actor.lease(limit, visibility_timeout)
            span.set_attribute("leased", len(messages))

        if messages:
            self._metrics.record_messages_leased(len(messages))
        return messages

    async def acknowledge(
        self,
        queue_id: str,
        message_id: str | None,
        pop_receipt: str | None,
    ) -> None:
        """
        Delete a leased message.

        Raises:
            InvalidRequestError: If the receipt does not match the message's
                current lease.
            QueueNotFoundError: If the queue does not exist.
        """
        actor = await self._actor(queue_id)

        with queue_span(SPAN_ACKNOWLEDGE, queue_id, message_id=message_id):
            try:
                await actor.acknowledge(message_id, pop_receipt)
            except InvalidRequestError:
                self._metrics.record_ack_rejected()
                raise

        self._metrics.record_message_acknowledged()

    async def queue_stats(self, queue_id: str) -> QueueStats:
        actor = await self._actor(queue_id)
        return await actor.stats()

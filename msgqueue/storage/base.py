"""
Storage interfaces.

The message store is the ordered key/value primitive a queue's lifecycle
engine is built on. The queue directory is the shared listing of queues.
"""

import base64
import binascii
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from msgqueue.exceptions import InvalidRequestError
from msgqueue.types.message import QueueMetadata


class MessageStore(ABC):
    """
    Ordered key/value store scoped to a single queue.

    Keys are strings compared lexicographically; values are JSON-compatible.
    Implementations do not retry: any I/O failure propagates to the caller.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the record stored under ``key``, or None."""

    @abstractmethod
    async def put(self, key: str, record: Any) -> None:
        """Store ``record`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key``. Returns True if a record was removed."""

    @abstractmethod
    async def scan(self, end: str, limit: int) -> list[tuple[str, Any]]:
        """
        Range scan from the smallest key.

        Args:
            end: Exclusive upper bound on keys.
            limit: Maximum number of records to return.

        Returns:
            Up to ``limit`` (key, record) pairs in ascending key order.
        """

    @abstractmethod
    async def list_all(self) -> dict[str, Any]:
        """Return every record, keyed and ordered by key."""

    @abstractmethod
    async def delete_all(self) -> None:
        """Delete every record."""

    @abstractmethod
    async def apply(
        self,
        puts: Mapping[str, Any],
        deletes: Sequence[str] = (),
    ) -> None:
        """
        Apply a batch of writes followed by deletes as one atomic change.

        Readers never observe a state where only part of the batch applied.
        """


class QueueDirectory(ABC):
    """
    Listing of all queues, keyed by queue id.

    Consulted only to check that a queue exists and to list queues; it is
    never read while delivering messages.
    """

    @abstractmethod
    async def put(self, queue_id: str, metadata: QueueMetadata) -> None:
        """Register or replace a queue's metadata."""

    @abstractmethod
    async def get(self, queue_id: str) -> QueueMetadata | None:
        """Return a queue's metadata, or None if it is not listed."""

    @abstractmethod
    async def delete(self, queue_id: str) -> None:
        """Remove a queue from the listing."""

    @abstractmethod
    async def list(
        self,
        prefix: str = "",
        cursor: str | None = None,
        limit: int = 1000,
    ) -> tuple[list[QueueMetadata], str | None]:
        """
        List queues whose id starts with ``prefix``, ordered by queue id.

        Args:
            prefix: Queue id prefix filter.
            cursor: Opaque cursor returned by a previous call.
            limit: Page size.

        Returns:
            Tuple of (entries, next_cursor). ``next_cursor`` is None on the
            last page.

        Raises:
            InvalidRequestError: If the cursor is malformed.
        """


def encode_cursor(queue_id: str) -> str:
    """Build an opaque cursor that resumes listing after ``queue_id``."""
    return base64.urlsafe_b64encode(queue_id.encode()).decode()


def decode_cursor(cursor: str) -> str:
    """Recover the last listed queue id from a cursor."""
    try:
        return base64.b64decode(cursor, altchars=b"-_", validate=True).decode()
    except (binascii.Error, ValueError) as e:
        raise InvalidRequestError(f"Invalid cursor: {cursor}") from e

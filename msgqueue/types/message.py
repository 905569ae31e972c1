"""
Queue and message record definitions.

These models are both the wire format and the at-rest format: records are
written to the message store as ``model_dump(mode="json")`` dicts.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from msgqueue.constants import DEFAULT_VISIBILITY_TIMEOUT_SECONDS


class QueueMetadata(BaseModel):
    """Metadata describing a queue. Immutable after creation."""

    queue_id: str
    name: str | None = None
    visibility_timeout: int = Field(default=DEFAULT_VISIBILITY_TIMEOUT_SECONDS, ge=0)
    created_time: datetime


class MessageMetadata(BaseModel):
    """Identity of an enqueued message, returned to the producer."""

    message_id: str
    queue_id: str
    inserted_time: datetime


class Message(MessageMetadata):
    """
    A visible message.

    Stored under its ``message_id`` until it is leased for the first time.
    """

    message_body: str


class PoppedMessage(Message):
    """
    A leased (invisible) message.

    Stored under ``pop_receipt``, an identifier whose time prefix is the
    moment the message becomes visible again. Every lease moves the record
    to a new receipt key.
    """

    pop_receipt: str
    visibility_timeout: int


class QueueStats(BaseModel):
    """Approximate message counts for a queue."""

    queue_id: str
    visible: int
    in_flight: int

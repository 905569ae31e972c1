"""
API request and response type definitions.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from msgqueue.types.message import PoppedMessage, QueueMetadata


class CreateQueueRequest(BaseModel):
    """Request body for creating a new queue."""

    name: str | None = Field(default=None, description="Human readable queue name")
    visibility_timeout: int | None = Field(
        default=None,
        ge=0,
        description="Default seconds a leased message stays hidden",
    )


class ListQueuesResponse(BaseModel):
    """One page of queues."""

    queues: list[QueueMetadata]
    cursor: str | None = None


class AddMessageRequest(BaseModel):
    """Request body for enqueueing a message."""

    message_body: str = Field(..., description="Message content, must not be empty")


class GetMessagesResponse(BaseModel):
    """Messages leased by a single request."""

    messages: list[PoppedMessage]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    storage: str
    loaded_queues: int = 0
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None

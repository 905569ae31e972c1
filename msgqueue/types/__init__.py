"""
Type definitions for the message queue service.
Contains record and API type definitions, grouped by module.
"""

from msgqueue.types.api import (
    AddMessageRequest,
    CreateQueueRequest,
    ErrorResponse,
    GetMessagesResponse,
    HealthResponse,
    ListQueuesResponse,
)
from msgqueue.types.message import (
    Message,
    MessageMetadata,
    PoppedMessage,
    QueueMetadata,
    QueueStats,
)

__all__ = [
    # API types
    "CreateQueueRequest",
    "ListQueuesResponse",
    "AddMessageRequest",
    "GetMessagesResponse",
    "HealthResponse",
    "ErrorResponse",
    # Record types
    "QueueMetadata",
    "MessageMetadata",
    "Message",
    "PoppedMessage",
    "QueueStats",
]

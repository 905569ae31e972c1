"""
Storage module.
Contains the message store and queue directory interfaces and their
in-memory implementations. SQL implementations live in ``msgqueue.db``.
"""

from msgqueue.storage.base import MessageStore, QueueDirectory
from msgqueue.storage.memory import (
    InMemoryMessageStore,
    InMemoryQueueDirectory,
    InMemoryStorage,
)

__all__ = [
    "MessageStore",
    "QueueDirectory",
    "InMemoryMessageStore",
    "InMemoryQueueDirectory",
    "InMemoryStorage",
]

"""
Core module.
Contains the message lifecycle engine, the per-queue actor, the actor
registry, and the queue service built on them.
"""

from msgqueue.core.actor import QueueActor
from msgqueue.core.lifecycle import MessageLifecycleEngine
from msgqueue.core.registry import ActorRegistry
from msgqueue.core.service import QueueService

__all__ = [
    "MessageLifecycleEngine",
    "QueueActor",
    "ActorRegistry",
    "QueueService",
]

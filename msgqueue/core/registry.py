"""
Routing table from queue id to the queue's actor.
"""

from collections.abc import Callable

from msgqueue.core.actor import QueueActor
from msgqueue.ids import SortableIdGenerator
from msgqueue.storage.base import MessageStore

StoreFactory = Callable[[str], MessageStore]


class ActorRegistry:
    """
    Maps each queue id to exactly one QueueActor.

    Actors are created lazily on first access. An actor for a live queue is
    kept for the life of the process, so memory grows with the number of
    queues touched since startup. Deleted queues are evicted once their
    actor is idle; a request arriving later builds a fresh actor, which
    reads the durable tombstone and refuses it.
    """

    def __init__(
        self,
        store_factory: StoreFactory,
        ids_factory: Callable[[], SortableIdGenerator] = SortableIdGenerator,
    ):
        """
        Initialize the registry.

        Args:
            store_factory: Returns the message store owned by a queue id.
            ids_factory: Creates the identifier generator for a new actor.
        """
        self._store_factory = store_factory
        self._ids_factory = ids_factory
        self._actors: dict[str, QueueActor] = {}

    def get(self, queue_id: str) -> QueueActor:
        """Return the actor for ``queue_id``, creating it if needed."""
        actor = self._actors.get(queue_id)
        if actor is None:
            actor = QueueActor(
                queue_id,
                self._store_factory(queue_id),
                self._ids_factory(),
            )
            self._actors[queue_id] = actor
        return actor

    def evict(self, queue_id: str) -> bool:
        """
        Drop the actor for ``queue_id`` unless it is busy.

        Returns:
            True if an actor was removed.
        """
        actor = self._actors.get(queue_id)
        if actor is None or actor.busy:
            return False
        del self._actors[queue_id]
        return True

    def __contains__(self, queue_id: str) -> bool:
        return queue_id in self._actors

    def __len__(self) -> int:
        return len(self._actors)

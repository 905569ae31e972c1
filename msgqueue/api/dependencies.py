"""
Service wiring and FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from msgqueue.config import Settings
from msgqueue.core import ActorRegistry, QueueService
from msgqueue.db.repository import SqlQueueDirectory, SqlStorage
from msgqueue.storage.memory import InMemoryQueueDirectory, InMemoryStorage


def build_service(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> QueueService:
    """
    Assemble a QueueService for the configured storage backend.

    Args:
        settings: Application settings.
        session_factory: Required when ``settings.storage_backend`` is ``sql``.

    Returns:
        QueueService: The service.
    """
    if settings.storage_backend == "sql":
        if session_factory is None:
            raise RuntimeError("SQL storage requires an initialized database")
        directory = SqlQueueDirectory(session_factory)
        registry = ActorRegistry(SqlStorage(session_factory).get_store)
    else:
        directory = InMemoryQueueDirectory()
        registry = ActorRegistry(InMemoryStorage().get_store)

    return QueueService(directory, registry, settings=settings)


def get_queue_service(request: Request) -> QueueService:
    """Dependency returning the application's QueueService."""
    service = getattr(request.app.state, "queue_service", None)
    if service is None:
        raise RuntimeError("Queue service not initialized")
    return service


QueueServiceDep = Annotated[QueueService, Depends(get_queue_service)]


async def require_queue(queue_id: str, service: QueueServiceDep) -> None:
    """
    Reject requests for unknown queues before their parameters are validated.

    Raises:
        QueueNotFoundError: If the queue does not exist.
    """
    await service.require_queue(queue_id)

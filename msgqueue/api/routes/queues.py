"""
Queue management routes.
"""

import logging

from fastapi import APIRouter, Query, status
from fastapi.responses import PlainTextResponse

from msgqueue.api.dependencies import QueueServiceDep
from msgqueue.types.api import CreateQueueRequest, ErrorResponse, ListQueuesResponse
from msgqueue.types.message import QueueMetadata, QueueStats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queues", tags=["Queues"])


@router.post(
    "",
    response_model=QueueMetadata,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a queue",
    description="Create a new queue. The body is optional.",
    responses={400: {"model": ErrorResponse}},
)
async def create_queue(
    service: QueueServiceDep,
    request: CreateQueueRequest | None = None,
) -> QueueMetadata:
    """
    Create a new queue.

    Args:
        service: The queue service.
        request: Optional name and default visibility timeout.

    Returns:
        The new queue's metadata.
    """
    request = request or CreateQueueRequest()
    return await service.create_queue(
        name=request.name,
        visibility_timeout=request.visibility_timeout,
    )


@router.get(
    "",
    response_model=ListQueuesResponse,
    response_model_exclude_none=True,
    summary="List queues",
    description="List queues one page at a time. Pass the returned cursor to get the next page.",
)
async def list_queues(
    service: QueueServiceDep,
    cursor: str | None = Query(default=None),
    prefix: str = Query(default=""),
) -> ListQueuesResponse:
    return await service.list_queues(cursor=cursor, prefix=prefix)


@router.get(
    "/{queue_id}",
    response_model=QueueMetadata,
    response_model_exclude_none=True,
    summary="Get queue details",
    responses={404: {"model": ErrorResponse}},
)
async def get_queue(queue_id: str, service: QueueServiceDep) -> QueueMetadata:
    return await service.get_queue(queue_id)


@router.delete(
    "/{queue_id}",
    response_class=PlainTextResponse,
    summary="Delete a queue",
    description="Delete a queue and all of its messages. Irreversible.",
    responses={404: {"model": ErrorResponse}},
)
async def delete_queue(queue_id: str, service: QueueServiceDep) -> str:
    await service.delete_queue(queue_id)
    return "OK"


@router.get(
    "/{queue_id}/stats",
    response_model=QueueStats,
    summary="Get queue statistics",
    description="Count visible and in-flight messages.",
    responses={404: {"model": ErrorResponse}},
)
async def get_queue_stats(queue_id: str, service: QueueServiceDep) -> QueueStats:
    return await service.queue_stats(queue_id)

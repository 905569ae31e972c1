"""
Message routes: enqueue, lease, and acknowledge.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from msgqueue.api.dependencies import QueueServiceDep, require_queue
from msgqueue.api.errors import format_validation_errors
from msgqueue.constants import DEFAULT_LEASE_LIMIT
from msgqueue.exceptions import InvalidRequestError
from msgqueue.types.api import AddMessageRequest, ErrorResponse, GetMessagesResponse
from msgqueue.types.message import MessageMetadata

# Existence is checked before any query or body validation, so requests
# for an unknown queue are 404 whatever else is wrong with them
router = APIRouter(
    prefix="/queues/{queue_id}/messages",
    tags=["Messages"],
    dependencies=[Depends(require_queue)],
)


@router.get(
    "",
    response_model=GetMessagesResponse,
    summary="Lease messages",
    description=(
        "Return up to `limit` ready messages and hide them for "
        "`visibility_timeout` seconds (defaults to the queue's setting)."
    ),
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_messages(
    queue_id: str,
    service: QueueServiceDep,
    limit: int = Query(default=DEFAULT_LEASE_LIMIT, ge=1),
    visibility_timeout: int | None = Query(default=None, ge=0),
) -> GetMessagesResponse:
    """
    Lease messages from a queue.

    Args:
        queue_id: The queue.
        service: The queue service.
        limit: Maximum number of messages to return.
        visibility_timeout: Seconds the returned messages stay hidden.

    Returns:
        GetMessagesResponse with the leased messages and their pop receipts.
    """
    messages = await service.lease(
        queue_id,
        limit=limit,
        visibility_timeout=visibility_timeout,
    )
    return GetMessagesResponse(messages=messages)


@router.post(
    "",
    response_model=MessageMetadata,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Enqueue a message",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": AddMessageRequest.model_json_schema()},
            },
        },
    },
)
async def create_message(
    queue_id: str,
    request: Request,
    service: QueueServiceDep,
) -> MessageMetadata:
    """
    Enqueue a message.

    The body is parsed here rather than by FastAPI so that the queue
    existence check runs first.

    Returns:
        The new message's metadata.
    """
    try:
        body = AddMessageRequest.model_validate_json(await request.body())
    except ValidationError as exc:
        raise InvalidRequestError(format_validation_errors(exc.errors())) from exc
    return await service.enqueue(queue_id, body.message_body)


@router.delete(
    "/{message_id}",
    response_class=PlainTextResponse,
    summary="Acknowledge a message",
    description="Delete a leased message. Requires the pop receipt of its latest lease.",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_message(
    queue_id: str,
    message_id: str,
    service: QueueServiceDep,
    pop_receipt: str | None = Query(default=None),
) -> str:
    """
    Acknowledge a leased message.

    Args:
        queue_id: The queue.
        message_id: The message to delete.
        service: The queue service.
        pop_receipt: Receipt returned when the message was leased.

    Returns:
        "OK" once the message is deleted.
    """
    await service.acknowledge(queue_id, message_id, pop_receipt)
    return "OK"

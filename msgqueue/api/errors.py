"""
Exception handlers mapping service errors to HTTP responses.
"""

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from msgqueue.exceptions import QueueServiceError
from msgqueue.types.api import ErrorResponse

logger = logging.getLogger(__name__)


def format_validation_errors(errors: Sequence[Any]) -> str:
    """Render pydantic error dicts as "loc: msg" pairs joined by semicolons."""
    return "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ())) or 'body'}: {error.get('msg')}"
        for error in errors
    )


async def queue_service_error_handler(request: Request, exc: QueueServiceError) -> JSONResponse:
    """Render a QueueServiceError with its own status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.error, detail=exc.detail).model_dump(),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report malformed requests as 400 rather than FastAPI's default 422.

    Covers unparseable JSON, missing required fields and out of range
    query parameters.
    """
    errors = exc.errors()
    detail = format_validation_errors(errors)
    logger.info(
        "Rejected malformed request",
        extra={"path": request.url.path, "errors": len(errors)},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="Bad Request", detail=detail or None).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QueueServiceError, queue_service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

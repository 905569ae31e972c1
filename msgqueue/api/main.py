"""
FastAPI application entry point.
"""

import logging
import time
from collections.abc import Callable
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from msgqueue import __version__
from msgqueue.api.dependencies import build_service
from msgqueue.api.errors import register_exception_handlers
from msgqueue.api.routes import health_router, messages_router, queues_router
from msgqueue.config import Settings, get_settings
from msgqueue.core import QueueService
from msgqueue.db import close_db, get_engine, init_db
from msgqueue.observability.logging import log_context, setup_logging
from msgqueue.observability.metrics import get_metrics, setup_metrics
from msgqueue.observability.tracing import (
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_tracing,
)

logger = logging.getLogger(__name__)

_UNTRACKED_PATHS = {"/metrics", "/live", "/docs", "/openapi.json"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the queue service on startup unless one was supplied to
    ``create_app``, and releases the database on shutdown.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    setup_metrics()
    setup_tracing(settings)

    owns_db = False
    if app.state.queue_service is None:
        session_factory = None
        if settings.storage_backend == "sql":
            session_factory = await init_db(settings)
            instrument_sqlalchemy(get_engine(settings))
            owns_db = True
        app.state.session_factory = session_factory
        app.state.queue_service = build_service(settings, session_factory)

    logger.info(
        "Application started",
        extra={"storage_backend": settings.storage_backend},
    )

    yield

    if owns_db:
        await close_db()
    logger.info("Application shutdown")


async def request_metrics_middleware(request: Request, call_next: Callable):
    """Record latency and status of every API request."""
    if request.url.path in _UNTRACKED_PATHS:
        return await call_next(request)

    start = time.perf_counter()
    with log_context(method=request.method, path=request.url.path):
        response = await call_next(request)

    # Label by route template so queue ids do not explode label cardinality
    route = request.scope.get("route")
    endpoint = getattr(route, "path", "unmatched")
    get_metrics().record_api_request(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code,
        duration_seconds=time.perf_counter() - start,
    )
    return response


def create_app(
    settings: Settings | None = None,
    queue_service: QueueService | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. Defaults to the cached settings.
        queue_service: A ready service to use instead of building one on
            startup (used by tests).

    Returns:
        FastAPI: The configured application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Message Queue API",
        description="Hosted message queues with visibility timeouts and at-least-once delivery",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.queue_service = queue_service
    app.state.session_factory = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_metrics_middleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(queues_router)
    app.include_router(messages_router)

    instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()

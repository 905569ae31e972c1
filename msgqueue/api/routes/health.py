"""
Health check routes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import Response
from sqlalchemy import text

from msgqueue import __version__
from msgqueue.db.connection import session_scope
from msgqueue.observability.metrics import get_metrics
from msgqueue.types.api import HealthResponse

router = APIRouter(tags=["Health"])


async def _check_storage(request: Request) -> str:
    """Ping the database when the SQL backend is in use."""
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        return "healthy"
    try:
        async with session_scope(session_factory) as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        return "unhealthy"
    return "healthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health of the API and its storage backend.",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Perform a health check.

    Returns:
        HealthResponse with service status.
    """
    storage_status = await _check_storage(request)
    service = getattr(request.app.state, "queue_service", None)

    return HealthResponse(
        status="healthy" if storage_status == "healthy" else "degraded",
        version=__version__,
        storage=f"{request.app.state.settings.storage_backend}:{storage_status}",
        loaded_queues=service.loaded_queues if service is not None else 0,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the service is ready to receive traffic.",
)
async def readiness_check(request: Request) -> dict:
    """
    Kubernetes readiness probe endpoint.

    Returns:
        Ready status.
    """
    ready = getattr(request.app.state, "queue_service", None) is not None
    return {"ready": ready and await _check_storage(request) == "healthy"}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    return {"alive": True}


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics() -> Response:
    """
    Expose Prometheus metrics.

    Returns:
        Prometheus-formatted metrics.
    """
    metrics_collector = get_metrics()
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )

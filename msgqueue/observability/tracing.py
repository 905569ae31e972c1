"""
OpenTelemetry tracing setup.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Span, Tracer

from msgqueue import __version__
from msgqueue.config import Settings, get_settings

logger = logging.getLogger(__name__)

_tracer: Tracer | None = None


def setup_tracing(
    settings: Settings | None = None,
    enable_console_export: bool = False,
) -> Tracer:
    """
    Install the tracer provider for the process.

    Spans leave the process only when ``otel_exporter_otlp_endpoint`` is set;
    otherwise they are recorded and dropped. The global provider can only be
    set once, so later calls return the tracer created by the first one.

    Args:
        settings: Settings to read the service name and endpoint from.
        enable_console_export: Also print finished spans to stdout.

    Returns:
        Tracer: The service tracer.
    """
    global _tracer
    if _tracer is not None:
        return _tracer

    settings = settings or get_settings()
    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.otel_service_name,
                "service.version": __version__,
            }
        )
    )

    endpoint = settings.otel_exporter_otlp_endpoint
    if endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(settings.otel_service_name)

    logger.info(
        "Tracing configured",
        extra={"otlp_endpoint": endpoint, "console_export": enable_console_export},
    )
    return _tracer


def get_tracer() -> Tracer:
    """Return the service tracer, installing it on first use."""
    return _tracer or setup_tracing()


@contextmanager
def queue_span(name: str, queue_id: str, **attributes: Any) -> Iterator[Span]:
    """
    Open a span for an operation on one queue.

    ``queue_id`` and any non-None ``attributes`` are set on the span.
    The span is yielded so results (message ids, counts) can be added.
    """
    with get_tracer().start_as_current_span(name) as span:
        span.set_attribute("queue_id", queue_id)
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


def instrument_fastapi(app: Any) -> None:
    """Trace every request handled by ``app``."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine: Any) -> None:
    """
    Trace the statements issued through ``engine``.

    Args:
        engine: A SQLAlchemy engine. Async engines are instrumented through
            their sync engine.
    """
    SQLAlchemyInstrumentor().instrument(engine=getattr(engine, "sync_engine", engine))

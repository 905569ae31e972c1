"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from msgqueue.observability.logging import get_logger, setup_logging
from msgqueue.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from msgqueue.observability.tracing import get_tracer, queue_span, setup_tracing

__all__ = [
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
    "queue_span",
]

"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from msgqueue.constants import (
    METRIC_ACK_REJECTED,
    METRIC_API_LATENCY,
    METRIC_API_REQUESTS,
    METRIC_MESSAGES_ACKNOWLEDGED,
    METRIC_MESSAGES_ENQUEUED,
    METRIC_MESSAGES_LEASED,
    METRIC_QUEUES_CREATED,
    METRIC_QUEUES_DELETED,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the queue service.

    Collects metrics for:
    - Queue creation and deletion
    - Messages enqueued, leased, and acknowledged
    - Rejected acknowledgements
    - API requests
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.queues_created = Counter(
            METRIC_QUEUES_CREATED,
            "Total number of queues created",
            registry=self._registry,
        )

        self.queues_deleted = Counter(
            METRIC_QUEUES_DELETED,
            "Total number of queues deleted",
            registry=self._registry,
        )

        self.messages_enqueued = Counter(
            METRIC_MESSAGES_ENQUEUED,
            "Total number of messages enqueued",
            registry=self._registry,
        )

        self.messages_leased = Counter(
            METRIC_MESSAGES_LEASED,
            "Total number of message leases granted",
            registry=self._registry,
        )

        self.messages_acknowledged = Counter(
            METRIC_MESSAGES_ACKNOWLEDGED,
            "Total number of messages acknowledged",
            registry=self._registry,
        )

        # Stale or mismatched pop receipts
        self.ack_rejected = Counter(
            METRIC_ACK_REJECTED,
            "Total number of rejected acknowledgements",
            registry=self._registry,
        )

        self.api_requests = Counter(
            METRIC_API_REQUESTS,
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )

        self.api_latency = Histogram(
            METRIC_API_LATENCY,
            "API request latency in seconds",
            ["method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

    def record_queue_created(self) -> None:
        self.queues_created.inc()

    def record_queue_deleted(self) -> None:
        self.queues_deleted.inc()

    def record_messages_enqueued(self, count: int = 1) -> None:
        self.messages_enqueued.inc(count)

    def record_messages_leased(self, count: int = 1) -> None:
        self.messages_leased.inc(count)

    def record_message_acknowledged(self) -> None:
        self.messages_acknowledged.inc()

    def record_ack_rejected(self) -> None:
        self.ack_rejected.inc()

    def record_api_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration_seconds: float,
    ) -> None:
        """Record an API request."""
        self.api_requests.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        self.api_latency.labels(method=method, endpoint=endpoint).observe(
            duration_seconds
        )

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics

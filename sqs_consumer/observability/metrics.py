"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from sqs_consumer.constants import (
    METRIC_BATCHES_IN_FLIGHT,
    METRIC_DELETE_FAILURES,
    METRIC_HANDLER_DURATION,
    METRIC_MESSAGES_DELETED,
    METRIC_MESSAGES_HANDLED,
    METRIC_MESSAGES_RECEIVED,
    METRIC_RECEIVE_CALLS,
    METRIC_RECEIVE_ERRORS,
    HandlerStatus,
    ReceiveResult,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the consumer pipeline.

    Collects metrics for:
    - Receive calls, received messages and receive errors
    - Handler outcomes and durations
    - Deleted messages and delete failures
    - Batches currently being processed
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.receive_calls = Counter(
            METRIC_RECEIVE_CALLS,
            "Total number of receive calls by result",
            ["queue", "result"],
            registry=self._registry,
        )

        self.messages_received = Counter(
            METRIC_MESSAGES_RECEIVED,
            "Total number of messages received",
            ["queue"],
            registry=self._registry,
        )

        self.receive_errors = Counter(
            METRIC_RECEIVE_ERRORS,
            "Total number of failed receive calls",
            ["queue"],
            registry=self._registry,
        )

        self.messages_handled = Counter(
            METRIC_MESSAGES_HANDLED,
            "Total number of handler invocations by outcome",
            ["queue", "status"],
            registry=self._registry,
        )

        self.handler_duration = Histogram(
            METRIC_HANDLER_DURATION,
            "Handler execution duration in seconds",
            ["queue"],
            buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )

        self.messages_deleted = Counter(
            METRIC_MESSAGES_DELETED,
            "Total number of messages deleted from the queue",
            ["queue"],
            registry=self._registry,
        )

        self.delete_failures = Counter(
            METRIC_DELETE_FAILURES,
            "Total number of delete entries that were not deleted",
            ["queue"],
            registry=self._registry,
        )

        self.batches_in_flight = Gauge(
            METRIC_BATCHES_IN_FLIGHT,
            "Number of batches currently being processed",
            ["queue"],
            registry=self._registry,
        )

    def record_receive(self, queue: str, count: int) -> None:
        """Record a successful receive call returning ``count`` messages."""
        result = ReceiveResult.MESSAGES if count else ReceiveResult.EMPTY
        self.receive_calls.labels(queue=queue, result=result).inc()
        if count:
            self.messages_received.labels(queue=queue).inc(count)

    def record_receive_error(self, queue: str) -> None:
        """Record a failed receive call."""
        self.receive_calls.labels(queue=queue, result=ReceiveResult.ERROR).inc()
        self.receive_errors.labels(queue=queue).inc()

    def record_message_handled(
        self,
        queue: str,
        status: HandlerStatus,
        duration_seconds: float,
    ) -> None:
        """Record a handler invocation."""
        self.messages_handled.labels(queue=queue, status=status).inc()
        self.handler_duration.labels(queue=queue).observe(duration_seconds)

    def record_deleted(self, queue: str, deleted: int, failed: int = 0) -> None:
        """Record the outcome of a batched delete."""
        if deleted:
            self.messages_deleted.labels(queue=queue).inc(deleted)
        if failed:
            self.delete_failures.labels(queue=queue).inc(failed)

    def batch_started(self, queue: str) -> None:
        self.batches_in_flight.labels(queue=queue).inc()

    def batch_finished(self, queue: str) -> None:
        self.batches_in_flight.labels(queue=queue).dec()


def setup_metrics(port: int | None = None) -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Args:
        port: If given, also serve the default registry over HTTP on this port.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    if port is not None:
        start_http_server(port)
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

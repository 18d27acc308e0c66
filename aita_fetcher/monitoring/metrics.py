"""Prometheus metrics for monitoring the AITA fetcher."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

# Define metrics
ITEMS_FETCHED = Counter(
    "aita_fetcher_items_fetched_total",
    "Total number of posts returned by fetch batches",
    ["subreddit"],
)

FETCH_OPERATIONS = Counter(
    "aita_fetcher_fetch_operations_total",
    "Number of fetch operations performed",
    ["operation_type"],
)

API_ERRORS = Counter(
    "aita_fetcher_api_errors_total",
    "Number of API errors encountered",
    ["error_type"],
)

AUTH_RETRIES = Counter(
    "aita_fetcher_auth_retries_total",
    "Number of rate-limited token exchanges that were retried",
)

COMMENTS_DEGRADED = Counter(
    "aita_fetcher_comments_degraded_total",
    "Number of posts returned without comments because enrichment failed",
    ["reason"],
)

REQUEST_DURATION = Histogram(
    "aita_fetcher_request_duration_seconds",
    "Duration of API requests in seconds",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the AITA fetcher."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_items_fetched(self, subreddit: str, count: int) -> None:
        ITEMS_FETCHED.labels(subreddit=subreddit).inc(count)

    def record_fetch_operation(self, operation_type: str) -> None:
        """
        Record a fetch operation.

        Args:
            operation_type: Type of fetch operation ('listing', 'comments', 'item')
        """
        FETCH_OPERATIONS.labels(operation_type=operation_type).inc()

    def record_api_error(self, error_type: str) -> None:
        """
        Record an API error.

        Args:
            error_type: Status code, 'decode' or 'connection'
        """
        API_ERRORS.labels(error_type=error_type).inc()

    def record_auth_retry(self) -> None:
        AUTH_RETRIES.inc()

    def record_comment_degraded(self, reason: str) -> None:
        """
        Record a post returned without comments.

        Args:
            reason: 'error' or 'timeout'
        """
        COMMENTS_DEGRADED.labels(reason=reason).inc()

    def time_request(self) -> "RequestTimer":
        """
        Create a context manager for timing API requests.

        Returns:
            RequestTimer context manager
        """
        return RequestTimer()


class RequestTimer:
    """Context manager for timing API requests."""

    def __init__(self):
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            REQUEST_DURATION.observe(time.monotonic() - self.start_time)

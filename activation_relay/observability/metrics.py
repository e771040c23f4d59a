"""
Metrics Collection with Prometheus.

Exposes relay and HTTP metrics for monitoring.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

from activation_relay import __version__


class MetricLabels:
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    OUTCOME = "outcome"
    ERROR_TYPE = "error_type"


class RelayMetrics:
    """
    Centralized metrics for the activation relay.

    - HTTP requests (rate, duration, in progress)
    - Checkout sessions (by product type and outcome)
    - Stripe webhooks (by event type and outcome)
    - Downstream forwards (by kind and outcome)
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        # ====================================================================
        # Service Info
        # ====================================================================
        self.service_info = Info("relay_service", "Service information")
        self.service_info.info({"version": __version__})

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "relay_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "relay_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        self.http_requests_in_progress = Gauge(
            "relay_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.METHOD],
        )

        # ====================================================================
        # Relay Metrics
        # ====================================================================
        self.checkout_sessions_total = Counter(
            "relay_checkout_sessions_total",
            "Checkout session creation attempts",
            ["product_type", MetricLabels.OUTCOME],
        )

        self.webhooks_total = Counter(
            "relay_stripe_webhooks_total",
            "Stripe webhook deliveries",
            ["event_type", MetricLabels.OUTCOME],
        )

        self.forwards_total = Counter(
            "relay_downstream_forwards_total",
            "Forwards to the game-server receiver",
            ["kind", MetricLabels.OUTCOME],
        )

        self.forward_duration_seconds = Histogram(
            "relay_downstream_forward_duration_seconds",
            "Downstream forward duration in seconds",
            ["kind"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.errors_total = Counter(
            "relay_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_checkout(self, product_type: str, outcome: str) -> None:
        """Record a checkout session attempt."""
        self.checkout_sessions_total.labels(product_type=product_type, outcome=outcome).inc()

    def record_webhook(self, event_type: str, outcome: str) -> None:
        """Record a Stripe webhook delivery."""
        self.webhooks_total.labels(event_type=event_type, outcome=outcome).inc()

    def record_forward(self, kind: str, success: bool, duration: float) -> None:
        """Record a downstream forward."""
        self.forwards_total.labels(kind=kind, outcome="success" if success else "failure").inc()
        self.forward_duration_seconds.labels(kind=kind).observe(duration)

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = RelayMetrics()

"""
Prometheus metrics for the booking engine.

Service timings come from ``@BaseService.measure_operation``; the sweeper and
the webhook verifier add their own outcome counters. Everything lives on a
private registry exposed at ``/metrics/prometheus``.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so test runs and the default process collectors never clash
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "booking_engine_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "booking_engine_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "booking_engine_errors_total",
    "Total number of service operation errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# outcome: expired, refunded, refund_failed, skipped, error, refund_retried, refund_recovered
expiration_sweep_bookings_total = Counter(
    "booking_engine_expiration_sweep_bookings_total",
    "Bookings handled by the expiration sweep, by outcome",
    ["outcome"],
    registry=REGISTRY,
)

webhook_events_total = Counter(
    "booking_engine_webhook_events_total",
    "Inbound gateway webhooks by event type and outcome",
    ["event_type", "outcome"],  # processed | ignored | duplicate | failed | rejected
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records booking-engine metrics and renders the exposition payload."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """Record one ``@measure_operation`` call."""
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_sweep_outcome(outcome: str, count: int = 1) -> None:
        if count > 0:
            expiration_sweep_bookings_total.labels(outcome=outcome).inc(count)

    @staticmethod
    def record_webhook_outcome(event_type: str, outcome: str) -> None:
        webhook_events_total.labels(event_type=event_type, outcome=outcome).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Metrics in Prometheus text exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()

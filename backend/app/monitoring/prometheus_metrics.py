"""
Prometheus metrics module for MentorMatch.

Service timings come from ``@BaseService.measure_operation``; the booking
core adds counters for availability sources and commit-time conflicts.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with default process metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "mentormatch_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "mentormatch_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "mentormatch_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

availability_lookups_total = Counter(
    "mentormatch_availability_lookups_total",
    "Availability lookups by the source that produced the slots",
    ["source"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "mentormatch_booking_conflicts_total",
    "Booking writes rejected because the slot was taken",
    ["stage"],
    registry=REGISTRY,
)

external_calendar_failures_total = Counter(
    "mentormatch_external_calendar_failures_total",
    "External calendar calls that failed",
    ["operation"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records and exposes Prometheus metrics."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_availability_source(source: str) -> None:
        availability_lookups_total.labels(source=source).inc()

    @staticmethod
    def record_booking_conflict(stage: str) -> None:
        """``stage`` is ``not_offered``, ``precheck``, ``locked_recheck`` or ``constraint``."""
        booking_conflicts_total.labels(stage=stage).inc()

    @staticmethod
    def record_external_calendar_failure(operation: str) -> None:
        external_calendar_failures_total.labels(operation=operation).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()

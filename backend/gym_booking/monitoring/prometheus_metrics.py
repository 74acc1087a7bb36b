"""
Prometheus metrics module for the gym booking backend.

Service timings come from ``@BaseService.measure_operation``; admission
outcomes and promotions are recorded by the admission engine.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "gym_booking_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "gym_booking_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "gym_booking_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

admission_outcomes_total = Counter(
    "gym_booking_admission_outcomes_total",
    "Reservation attempts by outcome",
    ["outcome"],  # confirmed | waitlist | error code
    registry=REGISTRY,
)

waitlist_promotions_total = Counter(
    "gym_booking_waitlist_promotions_total",
    "Waitlisted bookings promoted into a confirmed seat",
    registry=REGISTRY,
)

storage_retries_total = Counter(
    "gym_booking_storage_retries_total",
    "Admission transactions retried after a storage conflict",
    ["operation"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

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
            service: Service name (e.g., 'BookingAdmissionEngine')
            operation: Operation/method name (e.g., 'reserve')
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
    def record_admission(outcome: str) -> None:
        admission_outcomes_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_promotion() -> None:
        waitlist_promotions_total.inc()

    @staticmethod
    def record_storage_retry(operation: str) -> None:
        storage_retries_total.labels(operation=operation).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()

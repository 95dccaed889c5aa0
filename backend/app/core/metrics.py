"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Booking create/update attempts',
    ['operation', 'status']  # create/update; success, conflict, rejected, error
)

# HTTP metrics
request_latency = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency',
    ['method', 'status_code'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set; hit/miss
)

# Storage metrics
image_cleanup_failures = Counter(
    'image_cleanup_failures_total',
    'Stored images that could not be removed',
    ['reason']  # duplicate, insert_failed, property_deleted
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(operation: str, status: str):
    """Record booking attempt. Status: success, conflict, rejected, error"""
    booking_attempts.labels(operation=operation, status=status).inc()


def record_request(method: str, status_code: int, duration_seconds: float):
    request_latency.labels(method=method, status_code=str(status_code)).observe(duration_seconds)


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


def record_image_cleanup_failure(reason: str):
    image_cleanup_failures.labels(reason=reason).inc()

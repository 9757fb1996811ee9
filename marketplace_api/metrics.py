"""
Prometheus metrics for the marketplace API.

Tracks request performance, storage operations and fallback transitions.
"""

from fastapi import Response
from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Gauge, Histogram,
                               generate_latest)

# Request metrics
http_requests_total = Counter(
    "marketplace_http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "marketplace_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Storage metrics
db_operations_total = Counter(
    "marketplace_db_operations_total",
    "Total storage operations",
    ["operation", "backend", "status"],
)

db_operation_duration_seconds = Histogram(
    "marketplace_db_operation_duration_seconds",
    "Storage operation duration in seconds",
    ["operation", "backend"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

db_fallback_transitions_total = Counter(
    "marketplace_db_fallback_transitions_total",
    "Number of switches from the remote database to in-memory storage",
)

db_using_fallback = Gauge(
    "marketplace_db_using_fallback", "1 when in-memory fallback storage is active"
)

# Activity log metrics
activity_events_total = Counter(
    "marketplace_activity_events_total", "Total activity log writes", ["type", "success"]
)


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def track_db_operation(operation: str, backend: str, success: bool, duration: float):
    """Track storage operation metrics."""
    status = "success" if success else "failure"
    db_operations_total.labels(operation=operation, backend=backend, status=status).inc()
    db_operation_duration_seconds.labels(operation=operation, backend=backend).observe(duration)


def track_fallback_transition():
    """Record a switch to in-memory storage."""
    db_fallback_transitions_total.inc()
    db_using_fallback.set(1)


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

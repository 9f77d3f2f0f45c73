"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Order metrics
order_attempts = Counter(
    'order_attempts_total',
    'Terminal order outcomes',
    ['strategy', 'status']  # SUCCESS, FAILED_OUT_OF_STOCK, FAILED_CONFLICT
)

order_latency = Histogram(
    'order_latency_seconds',
    'Order placement latency, including lock waits and retries',
    ['strategy'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Optimistic locking metrics
order_conflicts = Counter(
    'order_conflicts_total',
    'Conditional updates that lost a version race',
    ['strategy']
)

order_retries = Counter(
    'order_retries_total',
    'Optimistic retry attempts after a version conflict'
)

# Store metrics
store_errors = Counter(
    'store_errors_total',
    'Store failures surfaced as StoreUnavailable',
    ['operation']  # order, audit, stats, product
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_order_outcome(strategy: str, status: str):
    """Record a terminal order outcome."""
    order_attempts.labels(strategy=strategy, status=status).inc()


def record_conflict(strategy: str):
    order_conflicts.labels(strategy=strategy).inc()


def record_store_error(operation: str):
    store_errors.labels(operation=operation).inc()

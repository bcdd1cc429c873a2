"""
Prometheus metrics middleware.

HTTP request counter + histogram, plus counters fed by the batch aggregator
so credit estimation volume is visible on /metrics.
"""

import time
from decimal import Decimal
from typing import Iterable

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# ── HTTP metrics ─────────────────────────────────────────────────────────────

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

# ── Estimation metrics ───────────────────────────────────────────────────────

credit_batches_total = Counter(
    "credit_batches_total",
    "Credit estimation batches processed",
)

credit_line_items_total = Counter(
    "credit_line_items_total",
    "Line items processed by the credit estimator",
    ["status"],  # estimated | not_found | invalid
)

credit_batch_size = Histogram(
    "credit_batch_size",
    "Number of line items per estimation batch",
    buckets=(1, 5, 10, 25, 50, 100, 250, 500),
)

credit_estimated_dollars_total = Counter(
    "credit_estimated_dollars_total",
    "Sum of estimated credit across all batches, before fees",
)


def record_batch(statuses: Iterable[str], total_credit: Decimal) -> None:
    """Count one estimated batch and its line items by result status."""
    size = 0
    for status in statuses:
        credit_line_items_total.labels(status=status).inc()
        size += 1
    credit_batches_total.inc()
    credit_batch_size.observe(size)
    credit_estimated_dollars_total.inc(float(total_credit))


# Routes whose last segment is an NDC path parameter
_NDC_ROUTES = ("/api/products",)


def _route_label(path: str, status_code: int) -> str:
    """Map a request path onto a bounded set of labels.

    /api/products/00071-0156-23 → /api/products/{ndc}; anything that hit no
    route is reported as "unmatched".
    """
    path = "/" + path.strip("/")
    for prefix in _NDC_ROUTES:
        if path.startswith(prefix + "/") and path.count("/") == prefix.count("/") + 1:
            return prefix + "/{ndc}"
    if status_code in (404, 405):
        return "unmatched"
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            path = _route_label(request.url.path, status_code)
            http_requests_total.labels(
                method=request.method, path=path, status_code=status_code,
            ).inc()
            http_request_duration_seconds.labels(
                method=request.method, path=path,
            ).observe(time.perf_counter() - start)

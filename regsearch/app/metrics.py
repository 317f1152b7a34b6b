from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

from regsearch.app.settings import settings

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
SEARCH_LATENCY = Histogram(
    "regsearch_search_duration_seconds",
    "Search duration in seconds",
    ["backend"],
)
SEARCH_RESULTS = Histogram(
    "regsearch_search_results",
    "Number of results returned per search",
    ["backend"],
    buckets=(0, 1, 5, 10, 25, 50, 100, 250, 1000),
)
BACKEND_ERRORS = Counter(
    "regsearch_backend_errors_total",
    "Search requests failed because the backend was unavailable",
    ["backend"],
)


async def metrics_middleware(request: Request, call_next):
    if not settings.metrics_enabled:
        return await call_next(request)
    path = request.url.path
    if path == "/metrics":
        return await call_next(request)
    start = time.monotonic()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        duration = time.monotonic() - start
        REQUEST_COUNT.labels(request.method, path, str(status)).inc()
        REQUEST_LATENCY.labels(request.method, path).observe(duration)


def observe_search(backend: str, duration: float, result_count: int) -> None:
    if not settings.metrics_enabled:
        return
    SEARCH_LATENCY.labels(backend).observe(duration)
    SEARCH_RESULTS.labels(backend).observe(result_count)


def record_backend_error(backend: str) -> None:
    if not settings.metrics_enabled:
        return
    BACKEND_ERRORS.labels(backend).inc()


def metrics_response() -> Response:
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

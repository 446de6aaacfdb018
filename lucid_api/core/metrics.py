"""Prometheus metrics for the application."""

import time

from prometheus_client import Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from lucid_api import __version__

# --- Metrics ---

APP_INFO = Info("lucid_api", "Lucid API gateway info")
APP_INFO.info({"version": __version__, "name": "lucid_api"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

UPSTREAM_CALLS = Counter(
    "upstream_calls_total",
    "LLM provider calls by outcome",
    ["vendor", "status"],
)

UPSTREAM_LATENCY = Histogram(
    "upstream_call_duration_seconds",
    "LLM provider call duration in seconds",
    ["vendor"],
    buckets=[0.25, 0.5, 1, 2.5, 5, 10, 15, 30, 60],
)

RATE_LIMITED = Counter(
    "rate_limited_requests_total",
    "Requests rejected by the per-client rate limiter",
    ["path"],
)

# Only fixed routes are labelled; anything else collapses to one label
_KNOWN_PATHS = frozenset({"/", "/api/search", "/api/chat", "/api/diagnose"})


def _normalize_path(path: str) -> str:
    return path if path in _KNOWN_PATHS else "other"


def record_upstream_call(vendor: str, status: str, latency_ms: int) -> None:
    UPSTREAM_CALLS.labels(vendor=vendor, status=status).inc()
    UPSTREAM_LATENCY.labels(vendor=vendor).observe(latency_ms / 1000)


# --- Middleware ---


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = _normalize_path(request.url.path)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        REQUEST_COUNT.labels(method=method, path=path, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=method, path=path).observe(duration)

        return response


def metrics_response() -> Response:
    """Generate Prometheus /metrics response."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )

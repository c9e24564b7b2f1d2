"""
API Middleware

- RequestLoggingMiddleware: request id in the log context, one completion
  event per request, latency histogram per route
- SecurityHeadersMiddleware: response hardening and no-store caching for
  dashboard data
"""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from prometheus_client import Histogram
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

REQUEST_LATENCY = Histogram(
    "scr_agro_http_request_seconds",
    "API request latency",
    ["method", "route", "status"],
)


def _route_template(request: Request) -> str:
    # path template, not the raw path
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once it completes and record its latency"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", method=request.method, path=request.url.path)
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        elapsed = time.perf_counter() - started
        route = _route_template(request)
        REQUEST_LATENCY.labels(method=request.method, route=route, status=str(response.status_code)).observe(elapsed)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "Request handled",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed * 1000:.2f}ms"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers; API responses are never cached by clients"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "same-origin"
        if request.url.path.startswith("/api/"):
            response.headers.setdefault("Cache-Control", "no-store")

        return response

"""
FastAPI middleware for observability.

Provides:
- Request correlation ID injection
- Automatic HTTP metrics collection
- Request/response logging
"""

import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging import get_logger, correlation_id_context
from .metrics import (
    http_requests_total,
    http_request_duration_seconds,
    http_requests_in_progress,
)

logger = get_logger(__name__)

# Detail routes carry free-form upstream ids and slugs
_DETAIL_PATHS = [
    (re.compile(r"^/api/models/(?!search$|trending$|filters$|random-term$)[^/]+/.+$"), "/api/models/{source}/{id}"),
    (re.compile(r"^/details/[^/]+/.+$"), "/details/{source}/{id}"),
]

SLOW_REQUEST_SECONDS = 2.0


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Middleware for automatic observability instrumentation.

    Adds a correlation ID to every request (honouring X-Request-ID or
    X-Correlation-ID from the caller), records RED metrics and logs
    request start/finish outside of health and metrics endpoints.
    """

    def __init__(self, app: ASGIApp, enable_request_logging: bool = True):
        super().__init__(app)
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")

        with correlation_id_context(correlation_id) as req_id:
            request.state.correlation_id = req_id

            path = self._sanitize_path(request.url.path)
            method = request.method
            quiet = self._is_health_check(request)

            http_requests_in_progress.labels(method=method, endpoint=path).inc()
            start_time = time.time()

            try:
                if self.enable_request_logging and not quiet:
                    logger.info(
                        "Request started",
                        extra={
                            "method": method,
                            "path": path,
                            "client_host": request.client.host if request.client else None,
                        },
                    )

                response = await call_next(request)
                duration = time.time() - start_time

                http_requests_total.labels(method=method, endpoint=path, status=response.status_code).inc()
                http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

                response.headers["X-Request-ID"] = req_id

                if self.enable_request_logging and not quiet:
                    logger.info(
                        "Request completed",
                        extra={
                            "method": method,
                            "path": path,
                            "status_code": response.status_code,
                            "duration_seconds": round(duration, 3),
                        },
                    )

                # Fan-out is bounded by the slowest source
                if duration > SLOW_REQUEST_SECONDS and not quiet:
                    logger.warning(
                        "Slow request detected",
                        extra={
                            "method": method,
                            "path": path,
                            "duration_seconds": round(duration, 3),
                            "status_code": response.status_code,
                        },
                    )

                return response

            except Exception as exc:
                duration = time.time() - start_time

                http_requests_total.labels(method=method, endpoint=path, status=500).inc()
                http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

                logger.error(
                    "Request failed",
                    extra={
                        "method": method,
                        "path": path,
                        "duration_seconds": round(duration, 3),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                raise

            finally:
                http_requests_in_progress.labels(method=method, endpoint=path).dec()

    def _sanitize_path(self, path: str) -> str:
        """Collapse per-listing paths so metric labels stay bounded."""
        for pattern, template in _DETAIL_PATHS:
            if pattern.match(path):
                return template
        return path

    def _is_health_check(self, request: Request) -> bool:
        return request.url.path.startswith("/health") or request.url.path.startswith("/metrics")

"""
Custom middleware.

Copyright (C) 2025 Prepdeck
"""

import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .config import get_settings
from .utils.metrics import REQUEST_COUNTER, REQUEST_LATENCY

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every request as one structured entry and record request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # Route template keeps metric label cardinality bounded
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)

        logger.info(
            "HTTP request processed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "response_time_ms": round(duration * 1000, 2),
            },
        )

        REQUEST_COUNTER.labels(method=request.method, path=path).inc()
        REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration)

        response.headers["X-Process-Time"] = str(duration)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if get_settings().ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

"""
eSync+ API — Request Logging Middleware
========================================

What:  One access-log line per request with status, duration, request ID
       and client address.
Who:   Logger "esync.access"; uvicorn's own access log is turned down in
       setup_logging() so requests are not logged twice.

Line Format:
    GET /api/products 200 12.4ms [5f0c2a1b] from 127.0.0.1

Level by status class:
    5xx → ERROR, 4xx → WARNING, everything else → INFO.
    GET /health is not logged (probes run every few seconds).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from esync_api.middleware.request_id import current_request_id

logger = logging.getLogger("esync.access")

SKIPPED_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = current_request_id(request)
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response

"""
Campus Scheduler — Request Logging Middleware
===============================================

What:  One access log line per scheduling request: method, path, status,
       duration, request ID and client address. Responses that point
       somewhere else (201 Created, 202 Accepted) also log their Location
       path, so an accepted bulk job or async update can be followed from
       the request that queued it to its /operations or /appointments/jobs
       status URL.
How:   Level follows the status code (5xx ERROR, 4xx WARNING, else INFO);
       /health polling is skipped. Request bodies (student ids, notes) are
       never logged.

Example:
    PUT /appointments/7/async 202 4.3ms [a1b2c3d4] from 10.0.0.12 -> /operations/5f0c...
    POST /appointments 201 12.8ms [9e7d1c20] from 10.0.0.12 -> /appointments/3
"""

import logging
import time
from urllib.parse import urlsplit

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from campus_scheduler.middleware.request_id import request_id_var

logger = logging.getLogger("campus_scheduler.access")

_QUIET_PATHS = frozenset({"/health"})
_REDIRECTING = frozenset({201, 202})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Structured access logging, correlated by request ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        location = ""
        if status in _REDIRECTING and "location" in response.headers:
            location = urlsplit(response.headers["location"]).path

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            f" -> {location}" if location else "",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "location": location or None,
            },
        )
        return response

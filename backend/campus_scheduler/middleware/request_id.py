"""
Campus Scheduler — Request ID Middleware
==========================================

What:  Gives every scheduling request a correlation ID, echoed in X-Request-ID
       and written into every error body the API returns.
How:   A client-supplied X-Request-ID is reused when it is a short printable
       token (so a front desk client can trace a booking across retries);
       anything else is replaced by a fresh 8-character ID. The ID lives in a
       ContextVar for the access log and exception handlers.

Background work:
    Bulk jobs and async updates run in TaskQueue workers after the response
    has gone, outside this context. Their log lines carry the job or
    operation id instead; the access line for the 202 prints the status URL,
    which ties the two together.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests share a thread
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_CLIENT_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def resolve_request_id(supplied: Optional[str]) -> str:
    if supplied and _CLIENT_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to every request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get("X-Request-ID"))
        request_id_var.set(rid)

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

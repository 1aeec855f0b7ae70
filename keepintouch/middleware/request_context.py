"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets a request_id which is:
- stored on request.state.request_id
- bound into structlog contextvars, so every log line emitted while the
  request is handled carries it
- echoed back in the X-Request-ID response header
"""

import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from keepintouch.infrastructure.observability.logging import log_request


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and time the request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.time()
        try:
            response = await call_next(request)
            log_request(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response

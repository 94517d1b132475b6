"""
HTTP request logging middleware.

Logs every request with method, path, status code, and duration. The request
id is bound into structlog's contextvars so provider and pipeline logs emitted
while serving the request carry it too.
"""

import time
import uuid
from typing import Iterable, Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

QUIET_PATHS = ("/healthz",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing and status info."""

    def __init__(self, app, quiet_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.quiet_paths = tuple(quiet_paths) if quiet_paths is not None else QUIET_PATHS

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            path = request.url.path

            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            elif path in self.quiet_paths:
                log = logger.debug
            else:
                log = logger.info

            # path only, never the query string
            log(
                "http_request",
                method=request.method,
                path=path,
                status=status_code,
                duration_ms=duration_ms,
                client=request.client.host if request.client else None,
            )

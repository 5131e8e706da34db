"""FastAPI middleware for request/response handling."""

from __future__ import annotations

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from indexarr.core.tracing import generate_trace_id, trace_context

TRACE_HEADER = "X-Trace-ID"

logger = structlog.get_logger("indexarr.middleware")


class TracingMiddleware(BaseHTTPMiddleware):
    """Bind a trace ID to every request and echo it in the response."""

    async def dispatch(self, request: Request, call_next):
        """Process request with a trace ID in the logging context.

        The ID is taken from the X-Trace-ID header when the caller sends one,
        otherwise a new one is generated.
        """
        trace_id = request.headers.get(TRACE_HEADER) or generate_trace_id()

        with trace_context(trace_id):
            logger.debug("Processing request", method=request.method, path=request.url.path)

            response = await call_next(request)
            response.headers[TRACE_HEADER] = trace_id

            logger.debug(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )
            return response

"""
Request context middleware for log correlation.

WHAT: Middleware that gives every request an id and makes it available
throughout the request lifecycle.

WHY: Error logs written deep in the store or exception handlers need a
request id to be traced back to a single call.

HOW: Stores the context in request.state and in a ContextVar, so services
and handlers can read it without the request object. request.state
outlives the ContextVar, which is reset when the middleware returns, so
handlers that run outside the middleware (the catch-all 500 handler) read
it from there.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestContext:
    """Request-scoped context data; request_id correlates log lines."""

    request_id: str


# ContextVar keeps each concurrent request's context isolated
_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context(request: Optional[Request] = None) -> Optional[RequestContext]:
    """
    Get the current request context.

    Args:
        request: If given, its stored context is preferred over the ContextVar

    Returns:
        RequestContext if within a request, None otherwise
    """
    if request is not None:
        context = getattr(request.state, "context", None)
        if context is not None:
            return context
    return _request_context.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures and stores request context.

    Every response carries the generated id in the X-Request-ID header.
    An incoming X-Request-ID header is reused so ids survive a proxy hop.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        context = RequestContext(request_id=request_id)
        request.state.context = context
        token = _request_context.set(context)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        finally:
            _request_context.reset(token)

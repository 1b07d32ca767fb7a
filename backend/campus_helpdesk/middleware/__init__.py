"""
Middleware package.

WHY: Middleware provides cross-cutting concerns, such as request ids for
log correlation, that apply to all requests.
"""

from campus_helpdesk.middleware.request_context import (
    RequestContextMiddleware,
    get_request_context,
    RequestContext,
)

__all__ = [
    "RequestContextMiddleware",
    "get_request_context",
    "RequestContext",
]

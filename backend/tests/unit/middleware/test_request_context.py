"""
Request Context Middleware Tests.

WHAT: Unit tests for RequestContextMiddleware and its helpers.

WHY: Error logs carry the request id; these tests make sure every response
exposes the same id and that the context never leaks between requests.
"""

import pytest
from unittest.mock import MagicMock
from starlette.requests import Request
from starlette.responses import Response

from campus_helpdesk.middleware.request_context import (
    RequestContext,
    RequestContextMiddleware,
    _request_context,
    get_request_context,
)


def _make_request(headers: dict = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/tickets",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": ("10.0.0.1", 12345),
    }
    return Request(scope)


class TestGetRequestContext:
    """Tests for the context accessor."""

    def test_none_outside_request(self):
        assert get_request_context() is None

    def test_returns_set_context(self):
        ctx = RequestContext(request_id="abc")
        token = _request_context.set(ctx)
        try:
            assert get_request_context() is ctx
        finally:
            _request_context.reset(token)

    def test_prefers_request_state(self):
        request = _make_request()
        request.state.context = RequestContext(request_id="from-state")

        assert get_request_context(request).request_id == "from-state"

    def test_request_without_context_falls_back(self):
        assert get_request_context(_make_request()) is None


@pytest.mark.asyncio
class TestRequestContextMiddleware:
    """Tests for the RequestContextMiddleware class."""

    async def test_adds_request_id_header(self):
        async def call_next(req):
            return Response(content="OK", status_code=200)

        middleware = RequestContextMiddleware(app=MagicMock())
        response = await middleware.dispatch(_make_request(), call_next)

        # UUID4 string
        assert len(response.headers["X-Request-ID"]) == 36

    async def test_reuses_incoming_request_id(self):
        async def call_next(req):
            return Response(content="OK")

        middleware = RequestContextMiddleware(app=MagicMock())
        response = await middleware.dispatch(_make_request({"X-Request-ID": "upstream-42"}), call_next)

        assert response.headers["X-Request-ID"] == "upstream-42"

    async def test_context_visible_during_request(self):
        seen = {}

        async def call_next(req):
            seen["context"] = get_request_context()
            seen["state"] = req.state.context
            return Response(content="OK")

        middleware = RequestContextMiddleware(app=MagicMock())
        response = await middleware.dispatch(_make_request(), call_next)

        assert seen["context"] is seen["state"]
        assert seen["context"].request_id == response.headers["X-Request-ID"]

    async def test_context_cleared_after_error_but_kept_on_request(self):
        async def call_next(req):
            raise RuntimeError("boom")

        request = _make_request({"X-Request-ID": "rid-7"})
        middleware = RequestContextMiddleware(app=MagicMock())
        with pytest.raises(RuntimeError):
            await middleware.dispatch(request, call_next)

        assert get_request_context() is None
        assert get_request_context(request).request_id == "rid-7"

"""Tests for middleware registration and CORS handling."""

import pytest

from wifi_upload.core.application import Application
from wifi_upload.core.lifespan import State
from wifi_upload.http.response import Response
from wifi_upload.middlewares.base import BaseMiddleware, MiddlewareHandler
from wifi_upload.middlewares.cors import CORSMiddleware


class TestBaseMiddleware:
    """Tests for BaseMiddleware subclass checks."""

    def test_requires_a_hook(self) -> None:
        """Verify a middleware overriding neither hook is rejected."""
        with pytest.raises(TypeError, match="must implement at least one of before/after"):

            class Empty(BaseMiddleware):
                pass

    def test_after_only(self) -> None:
        """Verify only the overridden hook is registered, for its endpoints only."""
        class Stamp(BaseMiddleware):
            def after(self, response: Response) -> Response:
                response.headers["X-Stamp"] = "1"
                return response

        app = Application(State())
        handler = MiddlewareHandler(app).register(Stamp(endpoints=["/x"]))

        assert len(handler.middlewares) == 1
        assert app.finalize(Response(200), "/x").headers == {"X-Stamp": "1"}
        assert app.finalize(Response(200), "/y").headers == {}


class TestCORSMiddleware:
    """Tests for CORSMiddleware."""

    def test_preflight_answer(self, make_request) -> None:
        """Verify OPTIONS is answered with an empty 200 and the allowed methods."""
        response = CORSMiddleware().before(make_request("OPTIONS", "/api/upload"))

        assert isinstance(response, Response)
        assert response.status_code == 200
        assert response.body == b""
        assert response.headers == {
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
        }

    def test_other_methods_pass_through(self, make_request) -> None:
        """Verify other requests continue to the handler."""
        request = make_request("GET", "/api/folders")
        assert CORSMiddleware().before(request) is request

    def test_after_keeps_explicit_origin(self) -> None:
        """Verify a handler-set origin is not overwritten."""
        response = Response(200, headers={"Access-Control-Allow-Origin": "http://phone.local"})
        assert CORSMiddleware().after(response).headers["Access-Control-Allow-Origin"] == "http://phone.local"

    def test_after_adds_wildcard(self) -> None:
        """Verify responses without an origin get the wildcard."""
        assert CORSMiddleware().after(Response(500)).headers["Access-Control-Allow-Origin"] == "*"

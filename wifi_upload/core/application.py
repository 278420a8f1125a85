"""Request dispatch: middleware hooks around an exact (method, path) route table."""

from collections.abc import Callable
from http import HTTPStatus

from wifi_upload.core.lifespan import State
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.core.router import Handler, Router
from wifi_upload.http.request import Method, Request
from wifi_upload.http.response import Response, error_response

BeforeHook = Callable[[Request], Request | Response]
AfterHook = Callable[[Response], Response]


class Application:
    """Routes complete requests to handlers and always answers with a Response.

    Hooks registered without endpoints run for every request, including
    requests that match no route.
    """

    def __init__(self, state: State) -> None:
        self.state = state
        self._routes: dict[tuple[str, str], Handler] = {}
        self._before: list[tuple[frozenset[str], BeforeHook]] = []
        self._after: list[tuple[frozenset[str], AfterHook]] = []

    def include_router(self, router: Router) -> None:
        for route in router.routes:
            key = (route.method, route.path)
            if key in self._routes:
                raise ValueError(f"Route already registered: {route.method} {route.path}")
            self._routes[key] = route.handler

    def get_all_routes(self) -> list[tuple[str, str]]:
        return list(self._routes)

    def before_request(self, hook: BeforeHook, endpoints: frozenset[str] = frozenset()) -> None:
        self._before.append((endpoints, hook))

    def after_request(self, hook: AfterHook, endpoints: frozenset[str] = frozenset()) -> None:
        self._after.append((endpoints, hook))

    async def dispatch(self, request: Request) -> Response:
        response: Response | None = None
        for endpoints, hook in self._before:
            if endpoints and request.path not in endpoints:
                continue
            result = hook(request)
            if isinstance(result, Response):
                response = result
                break
            request = result

        if response is None:
            response = await self._call_handler(request)
        return self.finalize(response, request.path)

    def finalize(self, response: Response, path: str | None = None) -> Response:
        """Run after hooks. Without a path only the global hooks apply."""
        for endpoints, hook in self._after:
            if endpoints and path not in endpoints:
                continue
            response = hook(response)
        return response

    async def _call_handler(self, request: Request) -> Response:
        if request.method not in tuple(Method):
            logger.warning("Method not allowed", icon=LogIcon.FORBIDDEN, method=request.method)
            return error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method Not Allowed")

        handler = self._routes.get((request.method, request.path))
        if handler is None:
            logger.info("No route", icon=LogIcon.WARNING, method=request.method, path=request.path)
            return error_response(HTTPStatus.NOT_FOUND, "Not Found")

        try:
            return await handler(request, self.state)
        except Exception:
            logger.exception("Handler failed", icon=LogIcon.ERROR, method=request.method, path=request.path)
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

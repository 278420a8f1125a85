"""Base middleware architecture for the upload application."""

from abc import ABC

from wifi_upload.core.application import Application
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.http.request import Request
from wifi_upload.http.response import Response


class BaseMiddleware(ABC):
    """Base class for middlewares with before/after hooks.

    Subclasses override at least one hook; only overridden hooks are wired.
    """

    endpoints: frozenset[str]

    def __init__(self, endpoints: frozenset[str] | list[str] | None = None) -> None:
        self.endpoints = frozenset(endpoints) if endpoints else frozenset()

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.overrides_before() and not cls.overrides_after():
            raise TypeError(f"{cls.__name__} must implement at least one of before/after")

    @classmethod
    def overrides_before(cls) -> bool:
        return cls.before is not BaseMiddleware.before

    @classmethod
    def overrides_after(cls) -> bool:
        return cls.after is not BaseMiddleware.after

    def before(self, request: Request) -> Request | Response:
        """Called before request handling. Return Request to continue or Response to short-circuit."""
        return request

    def after(self, response: Response) -> Response:
        """Called after request handling. Return modified Response."""
        return response


class MiddlewareHandler:
    """Manages middleware registration for an Application."""

    def __init__(self, app: Application) -> None:
        self._app = app
        self._middlewares: list[BaseMiddleware] = []

    @property
    def middlewares(self) -> list[BaseMiddleware]:
        return list(self._middlewares)

    def register(self, middleware: BaseMiddleware) -> "MiddlewareHandler":
        """Register a middleware. Returns self for chaining."""
        self._middlewares.append(middleware)
        self._apply_middleware(middleware)
        logger.info(f"Registered middleware: {middleware.__class__.__name__}", icon=LogIcon.ADAPTER)
        return self

    def _apply_middleware(self, middleware: BaseMiddleware) -> None:
        """Hook middleware into the app; no endpoints means every request."""
        if middleware.overrides_before():
            self._app.before_request(middleware.before, middleware.endpoints)
        if middleware.overrides_after():
            self._app.after_request(middleware.after, middleware.endpoints)

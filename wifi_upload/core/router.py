"""Router with automatic body parsing, validation and response handling."""

import inspect
from collections.abc import Awaitable, Callable
from functools import wraps
from http import HTTPStatus
from typing import Any, NamedTuple

from pydantic import BaseModel, ValidationError

from wifi_upload.core.lifespan import State
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.http.multipart import extract_boundary, parse_multipart
from wifi_upload.http.request import Method, Request
from wifi_upload.http.response import Response, error_response, json_response, text_response
from wifi_upload.models.core import BodyType, UploadForm

Handler = Callable[[Request, State], Awaitable[Response]]
BodyConfig = dict[str, tuple[BodyType, type]]


class Route(NamedTuple):
    method: str
    path: str
    handler: Handler


def parse_endpoint_signature(sig: inspect.Signature) -> BodyConfig:
    """Parse function signature for pydantic body and multipart form parameters."""
    parsed: BodyConfig = {}

    for name, param in sig.parameters.items():
        annotation = param.annotation

        match annotation:
            case type() if annotation is UploadForm:
                parsed[name] = (BodyType.MULTIPART, annotation)
            case type() if issubclass(annotation, BaseModel):
                parsed[name] = (BodyType.PYDANTIC, annotation)

    return parsed


def parse_request_body(body_config: BodyConfig, raw: bytes, kwargs: dict[str, Any]) -> Response | None:
    """Validate pydantic body parameters into kwargs."""
    for param_name, (body_type, model_cls) in body_config.items():
        if body_type is not BodyType.PYDANTIC:
            continue
        try:
            kwargs[param_name] = model_cls.model_validate_json(raw)
        except ValidationError as ex:
            logger.warning("Body validation failed", icon=LogIcon.JSON, errors=ex.error_count())
            return error_response(HTTPStatus.BAD_REQUEST, "Invalid request")
    return None


def parse_request_files(body_config: BodyConfig, request: Request, kwargs: dict[str, Any]) -> Response | None:
    """Decode a multipart body into UploadForm kwargs."""
    form_params = [name for name, (body_type, _) in body_config.items() if body_type is BodyType.MULTIPART]
    if not form_params:
        return None

    boundary = extract_boundary(request.head.content_type)
    if boundary is None:
        return error_response(HTTPStatus.BAD_REQUEST, "No boundary found")

    form = UploadForm(parse_multipart(request.body, boundary))
    logger.info("Multipart body decoded", icon=LogIcon.DETECTION, parts=len(form), files=len(form.files))
    for param_name in form_params:
        kwargs[param_name] = form

    return None


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case list():
            return json_response(result)
        case _:
            return text_response(str(result))


def _wrap_handler(handler: Callable) -> Handler:
    sig = inspect.signature(handler)
    body_config = parse_endpoint_signature(sig)
    state_params = {
        name for name, param in sig.parameters.items() if param.annotation is State or name == "state"
    }

    @wraps(handler)
    async def wrapped_handler(request: Request, state: State) -> Response:
        h_kwargs: dict[str, Any] = {}

        if error := parse_request_body(body_config, request.body, h_kwargs):
            return error

        if error := parse_request_files(body_config, request, h_kwargs):
            return error

        # Pass state only to handlers that declared it
        for name in state_params:
            h_kwargs[name] = state

        result = await handler(**h_kwargs)
        return parse_response(result)

    return wrapped_handler


class Router:
    """Collects routes under a prefix.

    Handlers declare what they need by annotation: a pydantic model gets the
    validated JSON body, ``UploadForm`` the decoded multipart form and
    ``State`` the application state. A returned list is sent as JSON, a
    Response as is, anything else as plain text.
    """

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix
        self.routes: list[Route] = []

    def route(self, method: str, endpoint: str) -> Callable[[Callable], Callable]:
        full_path = f"{self._prefix}{endpoint}".replace("//", "/")

        def handler_decorator(handler: Callable) -> Callable:
            self.routes.append(Route(method=method, path=full_path, handler=_wrap_handler(handler)))
            return handler

        return handler_decorator

    def get(self, endpoint: str) -> Callable[[Callable], Callable]:
        return self.route(Method.GET, endpoint)

    def post(self, endpoint: str) -> Callable[[Callable], Callable]:
        return self.route(Method.POST, endpoint)

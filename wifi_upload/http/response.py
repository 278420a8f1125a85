"""HTTP/1.1 response serialization."""

from http import HTTPStatus
from typing import Any

import orjson

TEXT = "text/plain; charset=utf-8"
HTML = "text/html; charset=utf-8"
JSON = "application/json"


def reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown"


class Response:
    """Status, content type, extra headers and a text or bytes body."""

    __slots__ = ("status_code", "body", "content_type", "headers")

    def __init__(
        self,
        status_code: int = HTTPStatus.OK,
        body: str | bytes = b"",
        content_type: str = TEXT,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = int(status_code)
        self.body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        self.content_type = content_type
        self.headers = dict(headers or {})

    def __repr__(self) -> str:
        return f"Response({self.status_code}, {self.body[:40]!r})"

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def encode(self) -> bytes:
        """Serialize to wire bytes. Content-Length is the body's byte length."""
        lines = [
            f"HTTP/1.1 {self.status_code} {reason_phrase(self.status_code)}",
            f"Content-Type: {self.content_type}",
            f"Content-Length: {len(self.body)}",
        ]
        lines.extend(
            f"{name}: {value}"
            for name, value in self.headers.items()
            if name.lower() not in ("content-type", "content-length")
        )
        return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + self.body


def text_response(body: str, status_code: int = HTTPStatus.OK) -> Response:
    return Response(status_code=status_code, body=body, content_type=TEXT)


def html_response(body: str, status_code: int = HTTPStatus.OK) -> Response:
    return Response(status_code=status_code, body=body, content_type=HTML)


def json_response(payload: Any, status_code: int = HTTPStatus.OK) -> Response:
    return Response(status_code=status_code, body=orjson.dumps(payload), content_type=JSON)


def error_response(status_code: int, message: str | None = None) -> Response:
    """Plain-text error, the reason phrase when no message is given."""
    return text_response(message or reason_phrase(status_code), status_code=status_code)

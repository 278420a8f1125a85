"""HTTP/1.1 request head parsing over raw bytes."""

from dataclasses import dataclass
from enum import StrEnum
from http import HTTPStatus

HEADER_DELIMITER = b"\r\n\r\n"


class HTTPParseError(Exception):
    """Request bytes could not be framed or parsed."""

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.status_code = int(status_code)


class Method(StrEnum):
    """Methods the server answers. Anything else is rejected with 405."""

    GET = "GET"
    POST = "POST"
    OPTIONS = "OPTIONS"


def find_header_end(buffer: bytes | bytearray, start: int = 0) -> int:
    """Offset of the first body byte, or -1 while the head is incomplete."""
    index = buffer.find(HEADER_DELIMITER, start)
    return -1 if index < 0 else index + len(HEADER_DELIMITER)


@dataclass(frozen=True, slots=True)
class RequestHead:
    method: str
    path: str
    version: str
    header_lines: tuple[str, ...]
    header_end: int

    def header(self, name: str) -> str | None:
        """Value of the first header called ``name``, compared case-insensitively."""
        wanted = name.lower()
        for line in self.header_lines:
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == wanted:
                return value.strip()
        return None

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    @property
    def content_length(self) -> int | None:
        """Declared body length; None when absent or not plain ASCII digits."""
        raw = self.header("content-length")
        if raw is None or not (raw.isascii() and raw.isdigit()):
            return None
        return int(raw)

    @property
    def keep_alive(self) -> bool:
        connection = (self.header("connection") or "").lower()
        return "close" not in connection


def parse_request_head(head: bytes | bytearray, header_end: int) -> RequestHead:
    """Parse the bytes before the header delimiter.

    Only ``head`` is decoded; the body is never looked at here.
    """
    try:
        text = bytes(head).decode("utf-8")
    except UnicodeDecodeError as err:
        raise HTTPParseError("Request head is not valid UTF-8") from err

    lines = text.split("\r\n")
    tokens = lines[0].split(" ")
    if len(tokens) < 3 or not all(tokens[:3]):
        raise HTTPParseError(f"Malformed request line: {lines[0][:80]!r}")

    method, target, version = tokens[0], tokens[1], tokens[2]
    path = target.split("?", 1)[0] or "/"
    header_lines = tuple(line for line in lines[1:] if line)
    return RequestHead(method=method, path=path, version=version, header_lines=header_lines, header_end=header_end)


@dataclass(frozen=True, slots=True)
class Request:
    """A complete request: parsed head plus the untouched body bytes."""

    head: RequestHead
    body: bytes

    @property
    def method(self) -> str:
        return self.head.method

    @property
    def path(self) -> str:
        return self.head.path

    def header(self, name: str) -> str | None:
        return self.head.header(name)

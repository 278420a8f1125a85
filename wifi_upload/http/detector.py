"""Request completion detection for a raw byte stream.

A connection's bytes go through ``AWAITING_HEADERS -> AWAITING_BODY ->
COMPLETE``. Once the head is parsed the body framing is fixed:

* ``NONE``: GET and OPTIONS, plus bodiless methods without Content-Length.
* ``CONTENT_LENGTH``: complete at ``header_end + Content-Length``.
* ``BOUNDARY``: multipart without Content-Length, complete when the buffer
  ends with a closing boundary.
* ``IDLE``: any other POST body. Complete only through :meth:`poll`, after
  ``idle_timeout`` seconds of silence with at least ``idle_min_bytes`` of
  body. This is a heuristic and can cut a slow upload short.
"""

from dataclasses import dataclass
from enum import StrEnum
from http import HTTPStatus

from wifi_upload.http.multipart import extract_boundary, final_boundary_markers, is_multipart
from wifi_upload.http.request import (
    HEADER_DELIMITER,
    HTTPParseError,
    Method,
    Request,
    RequestHead,
    find_header_end,
    parse_request_head,
)


class Phase(StrEnum):
    AWAITING_HEADERS = "awaiting_headers"
    AWAITING_BODY = "awaiting_body"
    COMPLETE = "complete"


class BodyFraming(StrEnum):
    NONE = "none"
    CONTENT_LENGTH = "content_length"
    BOUNDARY = "boundary"
    IDLE = "idle"


@dataclass(frozen=True, slots=True)
class FramingLimits:
    max_header_bytes: int = 64 * 1024
    max_request_bytes: int = 1024 * 1024 * 1024
    idle_timeout: float = 3.0
    idle_min_bytes: int = 50_000

    @classmethod
    def from_settings(cls, st) -> "FramingLimits":
        return cls(
            max_header_bytes=st.MAX_HEADER_BYTES,
            max_request_bytes=st.MAX_REQUEST_BYTES,
            idle_timeout=st.IDLE_BODY_TIMEOUT,
            idle_min_bytes=st.IDLE_BODY_MIN_BYTES,
        )


class CompletionDetector:
    """Owns a connection's receive buffer and decides when a request is whole.

    ``feed`` and ``poll`` return True only on the transition into COMPLETE.
    ``take`` then cuts the request off the buffer; leftover bytes belong to
    the next request and are evaluated straight away.
    """

    def __init__(self, limits: FramingLimits | None = None) -> None:
        self.limits = limits or FramingLimits()
        self.buffer = bytearray()
        self._reset_state()

    def _reset_state(self) -> None:
        self.phase = Phase.AWAITING_HEADERS
        self.framing: BodyFraming | None = None
        self.head: RequestHead | None = None
        self.boundary: str | None = None
        self.error: HTTPParseError | None = None
        self.started_at: float | None = None
        self.last_byte_at: float | None = None
        self._request_end: int | None = None
        self._scanned = 0

    @property
    def is_complete(self) -> bool:
        return self.phase is Phase.COMPLETE

    @property
    def header_end(self) -> int | None:
        return self.head.header_end if self.head else None

    @property
    def content_length(self) -> int | None:
        return self.head.content_length if self.head else None

    @property
    def body_size(self) -> int:
        return len(self.buffer) - self.head.header_end if self.head else 0

    def feed(self, chunk: bytes, now: float) -> bool:
        """Append received bytes; True when this chunk completed the request."""
        if not chunk:
            return False
        if self.started_at is None:
            self.started_at = now
        self.last_byte_at = now
        self.buffer.extend(chunk)
        return self._advance()

    def poll(self, now: float) -> bool:
        """Apply the idle-body fallback; True when it completed the request."""
        if self.phase is not Phase.AWAITING_BODY or self.framing is not BodyFraming.IDLE:
            return False
        if self.last_byte_at is None or now - self.last_byte_at < self.limits.idle_timeout:
            return False
        if self.body_size < self.limits.idle_min_bytes:
            return False
        return self._complete(len(self.buffer))

    def finish(self) -> bool:
        """End of stream: complete whatever is buffered, best effort."""
        if self.phase is Phase.COMPLETE or not self.buffer:
            return False
        if self.phase is Phase.AWAITING_HEADERS:
            return self._fail(HTTPParseError("Connection closed before the request head was complete"))
        return self._complete(len(self.buffer))

    def take(self, now: float) -> Request:
        """Remove the completed request from the buffer.

        Raises the framing error instead when the request was malformed; the
        buffer is discarded then, since its framing can no longer be trusted.
        """
        if self.phase is not Phase.COMPLETE:
            raise RuntimeError("request is not complete")

        if self.error is not None:
            error = self.error
            self.buffer.clear()
            self._reset_state()
            raise error

        head, end = self.head, min(self._request_end, len(self.buffer))
        body = bytes(self.buffer[head.header_end:end])
        del self.buffer[:end]
        self._reset_state()

        if self.buffer:
            self.started_at = self.last_byte_at = now
            self._advance()
        return Request(head=head, body=body)

    def _advance(self) -> bool:
        if self.phase is Phase.AWAITING_HEADERS and not self._read_head():
            return self.phase is Phase.COMPLETE
        if self.phase is Phase.AWAITING_BODY:
            return self._check_body()
        return False

    def _read_head(self) -> bool:
        header_end = find_header_end(self.buffer, max(0, self._scanned - len(HEADER_DELIMITER) + 1))
        self._scanned = len(self.buffer)
        if header_end < 0:
            if len(self.buffer) > self.limits.max_header_bytes:
                self._fail(HTTPParseError("Request head too large", HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE))
            return False

        try:
            self.head = parse_request_head(self.buffer[: header_end - len(HEADER_DELIMITER)], header_end)
        except HTTPParseError as err:
            self._fail(err)
            return False

        self.framing = self._choose_framing(self.head)
        declared = self.head.content_length
        if self.framing is BodyFraming.CONTENT_LENGTH and header_end + declared > self.limits.max_request_bytes:
            self._fail(HTTPParseError("Request body too large", HTTPStatus.REQUEST_ENTITY_TOO_LARGE))
            return False

        self.phase = Phase.AWAITING_BODY
        return True

    def _choose_framing(self, head: RequestHead) -> BodyFraming:
        if head.method in (Method.GET, Method.OPTIONS):
            return BodyFraming.NONE
        if head.content_length is not None:
            return BodyFraming.CONTENT_LENGTH
        if head.method != Method.POST:
            return BodyFraming.NONE
        if is_multipart(head.content_type) and (boundary := extract_boundary(head.content_type)):
            self.boundary = boundary
            return BodyFraming.BOUNDARY
        return BodyFraming.IDLE

    def _check_body(self) -> bool:
        header_end = self.head.header_end
        match self.framing:
            case BodyFraming.NONE:
                return self._complete(header_end)
            case BodyFraming.CONTENT_LENGTH:
                end = header_end + self.head.content_length
                if len(self.buffer) >= end:
                    return self._complete(end)
            case BodyFraming.BOUNDARY:
                markers = final_boundary_markers(self.boundary)
                tail = self.buffer[max(header_end, len(self.buffer) - len(markers[0])):]
                if tail.endswith(markers):
                    return self._complete(len(self.buffer))

        if len(self.buffer) > self.limits.max_request_bytes:
            return self._fail(HTTPParseError("Request body too large", HTTPStatus.REQUEST_ENTITY_TOO_LARGE))
        return False

    def _complete(self, end: int) -> bool:
        self.phase = Phase.COMPLETE
        self._request_end = end
        return True

    def _fail(self, error: HTTPParseError) -> bool:
        self.phase = Phase.COMPLETE
        self.error = error
        return True

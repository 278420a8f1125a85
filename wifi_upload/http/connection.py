"""Per-connection receive loop: buffer, detect completion, dispatch, reply."""

import asyncio
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from http import HTTPStatus

import structlog
from asgi_correlation_id import correlation_id

from wifi_upload.core.application import Application
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.http.detector import CompletionDetector
from wifi_upload.http.request import HTTPParseError
from wifi_upload.http.response import Response, error_response


@dataclass(eq=False)
class Session:
    """Server-side state of one accepted connection."""

    peer: str
    detector: CompletionDetector
    writer: asyncio.StreamWriter
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    opened_at: float = field(default_factory=time.monotonic)
    last_activity: float = field(default_factory=time.monotonic)
    dispatching: bool = False
    closing: bool = False
    requests_served: int = 0
    task: asyncio.Task | None = None

    def idle_for(self, now: float) -> float:
        return now - self.last_activity

    def close(self) -> None:
        self.closing = True
        if not self.writer.is_closing():
            self.writer.close()


class ConnectionHandler:
    """Drives one session until the peer leaves, the transport fails or the server closes it.

    After each response the loop goes back to reading, so a client can send
    several requests over the same connection.
    """

    def __init__(
        self,
        app: Application,
        session: Session,
        reader: asyncio.StreamReader,
        *,
        chunk_size: int = 64 * 1024,
        poll_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.app = app
        self.session = session
        self.reader = reader
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self._clock = clock

    async def run(self) -> None:
        correlation_id.set(self.session.id)
        structlog.contextvars.bind_contextvars(session=self.session.id)
        logger.info("Connection opened", icon=LogIcon.NETWORK, peer=self.session.peer)
        try:
            await self._receive_loop()
        except asyncio.CancelledError:
            logger.info("Connection cancelled", icon=LogIcon.STOP)
            raise
        except OSError as ex:
            logger.warning("Transport failure", icon=LogIcon.ERROR, error=repr(ex))
        except Exception:
            logger.exception("Connection failed", icon=LogIcon.ERROR)
            await self._send_last(error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error"))
        finally:
            self.session.close()
            logger.info("Connection closed", icon=LogIcon.NETWORK, requests=self.session.requests_served)
            structlog.contextvars.unbind_contextvars("session")

    async def _receive(self) -> bytes | None:
        """Next chunk, b"" at end of stream, None when nothing arrived within the poll interval."""
        try:
            return await asyncio.wait_for(self.reader.read(self.chunk_size), timeout=self.poll_interval)
        except TimeoutError:
            return None

    async def _receive_loop(self) -> None:
        detector = self.session.detector
        while not self.session.closing:
            chunk = await self._receive()
            if self.session.closing:
                return
            now = self._clock()

            if chunk is None:
                if detector.poll(now):
                    logger.warning("Body completed by idle timeout", icon=LogIcon.TIMEOUT, size=detector.body_size)
                    if not await self._respond(now):
                        return
                continue

            if not chunk:
                if detector.finish():
                    logger.info("Stream ended, processing buffered bytes", icon=LogIcon.STREAMING)
                    await self._respond(now)
                return

            self.session.last_activity = now
            if detector.feed(chunk, now) and not await self._respond(now):
                return

    async def _respond(self, now: float) -> bool:
        """Answer every complete request in the buffer. False when the connection must close."""
        detector = self.session.detector
        while detector.is_complete:
            self.session.dispatching = True
            try:
                try:
                    request = detector.take(now)
                except HTTPParseError as err:
                    logger.warning("Malformed request", icon=LogIcon.FORBIDDEN, error=str(err), status=err.status_code)
                    await self._send(self.app.finalize(error_response(err.status_code, str(err))))
                    return False

                logger.info("Request received", icon=LogIcon.DOWNLOAD, method=request.method, path=request.path, body=len(request.body))
                response = await self.app.dispatch(request)
                await self._send(response)
                self.session.requests_served += 1
                if not request.head.keep_alive:
                    return False
            finally:
                self.session.dispatching = False
                self.session.last_activity = self._clock()
        return True

    async def _send(self, response: Response) -> None:
        payload = response.encode()
        self.session.writer.write(payload)
        await self.session.writer.drain()
        logger.info("Response sent", icon=LogIcon.UPLOAD, status=response.status_code, size=len(payload))

    async def _send_last(self, response: Response) -> None:
        """Best-effort reply before closing. After hooks are skipped since they may be what failed."""
        if self.session.writer.is_closing():
            return
        try:
            await self._send(response)
        except OSError as ex:
            logger.warning("Could not send final response", icon=LogIcon.ERROR, error=repr(ex))

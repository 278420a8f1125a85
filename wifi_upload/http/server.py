"""Upload server lifecycle: listener, live sessions and the idle reaper."""

import asyncio
import time

from wifi_upload.core.application import Application
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.core.status import UploadStatusBoard
from wifi_upload.http.connection import ConnectionHandler, Session
from wifi_upload.http.detector import CompletionDetector, FramingLimits


class UploadServer:
    """Accepts TCP connections and serves each one in its own task.

    Sessions share nothing but the application and its file store. A reaper
    closes connections that sat idle for ``keepalive_timeout`` seconds.
    """

    def __init__(
        self,
        app: Application,
        *,
        host: str = "0.0.0.0",
        port: int = 8080,
        limits: FramingLimits | None = None,
        chunk_size: int = 64 * 1024,
        poll_interval: float = 0.5,
        keepalive_timeout: float = 30.0,
        reaper_interval: float = 5.0,
        status_board: UploadStatusBoard | None = None,
    ) -> None:
        self.app = app
        self.host = host
        self._port = port
        self.limits = limits or FramingLimits()
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self.keepalive_timeout = keepalive_timeout
        self.reaper_interval = reaper_interval
        self.status_board = status_board
        self._server: asyncio.Server | None = None
        self._reaper: asyncio.Task | None = None
        self._sessions: dict[str, Session] = {}

    @classmethod
    def from_settings(cls, app: Application, st, status_board: UploadStatusBoard | None = None) -> "UploadServer":
        return cls(
            app,
            host=st.API_HOST,
            port=st.API_PORT,
            limits=FramingLimits.from_settings(st),
            chunk_size=st.READ_CHUNK_SIZE,
            poll_interval=st.IDLE_POLL_INTERVAL,
            keepalive_timeout=st.KEEPALIVE_TIMEOUT,
            reaper_interval=st.REAPER_INTERVAL,
            status_board=status_board,
        )

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int:
        """Bound port once running, the configured one otherwise."""
        if self._server and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]
        return self._port

    @property
    def sessions(self) -> dict[str, Session]:
        return dict(self._sessions)

    async def start(self) -> None:
        if self._server is not None:
            logger.info("Upload server already running", icon=LogIcon.INFO, port=self.port)
            return
        self._server = await asyncio.start_server(self._accept, self.host, self._port, reuse_address=True)
        self._reaper = asyncio.create_task(self._reap_forever(), name="upload-server-reaper")
        logger.info("Upload server listening", icon=LogIcon.START, host=self.host, port=self.port)

    async def stop(self) -> None:
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()

        if self._reaper is not None:
            self._reaper.cancel()
            await asyncio.gather(self._reaper, return_exceptions=True)
            self._reaper = None

        sessions = list(self._sessions.values())
        for session in sessions:
            session.close()
            if session.task is not None:
                session.task.cancel()
        await asyncio.gather(*(s.task for s in sessions if s.task is not None), return_exceptions=True)
        await server.wait_closed()

        self._sessions.clear()
        if self.status_board is not None:
            self.status_board.clear()
        logger.info("Upload server stopped", icon=LogIcon.STOP, closed_sessions=len(sessions))

    async def _accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        session = Session(
            peer=f"{peer[0]}:{peer[1]}" if peer else "unknown",
            detector=CompletionDetector(self.limits),
            writer=writer,
            task=asyncio.current_task(),
        )
        self._sessions[session.id] = session
        handler = ConnectionHandler(
            self.app, session, reader, chunk_size=self.chunk_size, poll_interval=self.poll_interval
        )
        try:
            await handler.run()
        finally:
            self._sessions.pop(session.id, None)

    def reap_idle(self, now: float) -> int:
        """Close sessions idle for at least keepalive_timeout. Returns how many were closed."""
        reaped = 0
        for session in list(self._sessions.values()):
            if session.dispatching or session.closing:
                continue
            if session.idle_for(now) >= self.keepalive_timeout:
                logger.info("Reaping idle connection", icon=LogIcon.TIMEOUT, session=session.id, idle=round(session.idle_for(now), 1))
                session.close()
                reaped += 1
        return reaped

    async def _reap_forever(self) -> None:
        while True:
            await asyncio.sleep(self.reaper_interval)
            self.reap_idle(time.monotonic())

"""Test fixtures for wifi-upload-server unit tests."""

import asyncio
from pathlib import Path

import pytest

from wifi_upload.api.routes import create_app
from wifi_upload.core.application import Application
from wifi_upload.core.lifespan import State
from wifi_upload.core.status import UploadStatusBoard
from wifi_upload.http.detector import CompletionDetector
from wifi_upload.http.request import Request
from wifi_upload.http.server import UploadServer
from wifi_upload.storage.file_store import FolderExistsError, StorageError, validate_name

MEMORY_ROOT = Path("/memory")


# -----------------------------------------------------------------------------
# In-memory file store
# -----------------------------------------------------------------------------


class MemoryFileStore:
    """FileStore kept in dicts: folder name -> {filename: bytes}."""

    def __init__(self, folders: list[str] | None = None) -> None:
        self.folders: dict[str, dict[str, bytes]] = {name: {} for name in folders or []}
        self.failing_files: set[str] = set()

    def list_folders(self) -> list[str]:
        return list(self.folders)

    def create_folder(self, name: str) -> Path:
        name = validate_name(name)
        if name in self.folders:
            raise FolderExistsError(f"Folder already exists: {name}")
        self.folders[name] = {}
        return MEMORY_ROOT / name

    def folder_path(self, name: str) -> Path:
        return MEMORY_ROOT / validate_name(name)

    def write_file(self, folder_path: Path, filename: str, data: bytes) -> Path:
        folder = Path(folder_path).name
        if folder not in self.folders:
            raise StorageError(f"No such folder: {folder}")
        if filename in self.failing_files:
            raise StorageError("Disk full")
        self.folders[folder][validate_name(filename)] = bytes(data)
        return Path(folder_path) / filename

    def file_exists(self, path: Path) -> bool:
        path = Path(path)
        if path.parent == MEMORY_ROOT:
            return path.name in self.folders
        return path.name in self.folders.get(path.parent.name, {})


# -----------------------------------------------------------------------------
# Application fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> MemoryFileStore:
    return MemoryFileStore(folders=["Rock", "Jazz"])


@pytest.fixture
def status_board() -> UploadStatusBoard:
    return UploadStatusBoard(grace_period=0.05)


@pytest.fixture
def app_state(memory_store: MemoryFileStore, status_board: UploadStatusBoard) -> State:
    """State laid out the way the lifespan events build it."""
    state = State()
    state.file_store = memory_store
    state.upload_status = status_board
    yield state
    state.clear()


@pytest.fixture
def app(app_state: State) -> Application:
    return create_app(app_state)


# -----------------------------------------------------------------------------
# Request builders
# -----------------------------------------------------------------------------


def _raw_request(method: str, path: str, headers: dict[str, str] | None = None, body: bytes = b"") -> bytes:
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    lines.extend(f"{name}: {value}" for name, value in (headers or {}).items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode() + body


@pytest.fixture
def raw_request():
    """Factory for raw request bytes."""
    return _raw_request


@pytest.fixture
def make_request():
    """Factory for parsed Requests, framed through the completion detector."""

    def _make(method: str, path: str, headers: dict[str, str] | None = None, body: bytes = b"") -> Request:
        detector = CompletionDetector()
        detector.feed(_raw_request(method, path, headers, body), now=0.0)
        if not detector.is_complete:
            detector.finish()
        return detector.take(now=0.0)

    return _make


def _multipart_body(boundary: str, parts: list[tuple], terminator: str = "\r\n") -> bytes:
    """Build a body from ("field", name, value) and ("file", name, filename, data) tuples."""
    chunks = []
    for part in parts:
        chunks.append(f"--{boundary}\r\n".encode())
        if part[0] == "field":
            _, name, value = part
            chunks.append(f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode())
            chunks.append(value.encode() if isinstance(value, str) else value)
        else:
            _, name, filename, data = part
            chunks.append(
                f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
                "Content-Type: application/octet-stream\r\n\r\n".encode()
            )
            chunks.append(data)
        chunks.append(b"\r\n")
    chunks.append(f"--{boundary}--{terminator}".encode())
    return b"".join(chunks)


@pytest.fixture
def multipart_body():
    """Factory for multipart/form-data bodies."""
    return _multipart_body


# -----------------------------------------------------------------------------
# Live server
# -----------------------------------------------------------------------------


@pytest.fixture
async def running_server(app: Application, status_board: UploadStatusBoard) -> UploadServer:
    server = UploadServer(
        app,
        host="127.0.0.1",
        port=0,
        poll_interval=0.05,
        keepalive_timeout=30.0,
        reaper_interval=60.0,
        status_board=status_board,
    )
    await server.start()
    yield server
    await server.stop()


async def _read_response(reader: asyncio.StreamReader) -> tuple[int, dict[str, str], bytes]:
    head = await asyncio.wait_for(reader.readuntil(b"\r\n\r\n"), timeout=5)
    lines = head.decode().split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        if line:
            name, _, value = line.partition(":")
            headers[name.strip().lower()] = value.strip()
    body = await asyncio.wait_for(reader.readexactly(int(headers["content-length"])), timeout=5)
    return status, headers, body


@pytest.fixture
def read_response():
    """Read one HTTP response: (status, lower-cased headers, body)."""
    return _read_response

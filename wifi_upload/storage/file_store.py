"""Folder and file storage behind the upload server."""

import shutil
from pathlib import Path
from typing import Protocol, runtime_checkable

from wifi_upload.core.logger import LogIcon, logger


class StorageError(Exception):
    """A folder or file operation failed."""


class FolderExistsError(StorageError):
    """Tried to create a folder that is already there."""


class InvalidNameError(StorageError):
    """A folder or file name is not a single plain path component."""


def validate_name(name: str) -> str:
    """Return ``name`` stripped, or raise when it could escape its parent."""
    cleaned = name.strip()
    if not cleaned or cleaned in (".", "..") or "/" in cleaned or "\\" in cleaned or "\x00" in cleaned:
        raise InvalidNameError(f"Invalid name: {name!r}")
    return cleaned


@runtime_checkable
class FileStore(Protocol):
    """What the server needs from persistent storage."""

    def list_folders(self) -> list[str]: ...

    def create_folder(self, name: str) -> Path: ...

    def folder_path(self, name: str) -> Path: ...

    def write_file(self, folder_path: Path, filename: str, data: bytes) -> Path: ...

    def file_exists(self, path: Path) -> bool: ...


class LocalFileStore:
    """Folders of media files under a single root directory."""

    def __init__(self, root: Path, media_extensions: tuple[str, ...] = ("mp3", "m4a")) -> None:
        self.root = Path(root)
        self.media_extensions = frozenset(ext.lower() for ext in media_extensions)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def list_folders(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(entry.name for entry in self.root.iterdir() if entry.is_dir())

    def create_folder(self, name: str) -> Path:
        path = self.folder_path(name)
        if path.exists():
            raise FolderExistsError(f"Folder already exists: {name.strip()}")
        try:
            path.mkdir(parents=True)
        except FileExistsError as err:
            raise FolderExistsError(f"Folder already exists: {name.strip()}") from err
        except OSError as err:
            raise StorageError(f"Could not create folder {name!r}: {err.strerror}") from err
        logger.info("Folder created", icon=LogIcon.FOLDER, folder=path.name)
        return path

    def folder_path(self, name: str) -> Path:
        return self.root / validate_name(name)

    def write_file(self, folder_path: Path, filename: str, data: bytes) -> Path:
        """Write ``data`` as ``filename`` inside ``folder_path``, replacing any existing file."""
        target = Path(folder_path) / validate_name(filename)
        try:
            target.write_bytes(data)
        except OSError as err:
            raise StorageError(f"Could not write {filename!r}: {err.strerror}") from err
        logger.info("File written", icon=LogIcon.DATABASE, file=target.name, size=len(data))
        return target

    def file_exists(self, path: Path) -> bool:
        return Path(path).exists()

    def list_media(self, folder: str) -> list[str]:
        """Files in ``folder`` whose extension is a supported media type."""
        path = self.folder_path(folder)
        if not path.is_dir():
            return []
        return sorted(
            entry.name
            for entry in path.iterdir()
            if entry.is_file() and entry.suffix.lstrip(".").lower() in self.media_extensions
        )

    def delete_folder(self, name: str) -> None:
        """Remove a folder with everything in it."""
        path = self.folder_path(name)
        try:
            shutil.rmtree(path)
        except OSError as err:
            raise StorageError(f"Could not delete folder {name!r}: {err.strerror}") from err

    def delete_file(self, folder: str, filename: str) -> None:
        path = self.folder_path(folder) / validate_name(filename)
        try:
            path.unlink()
        except OSError as err:
            raise StorageError(f"Could not delete {filename!r}: {err.strerror}") from err

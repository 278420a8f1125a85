"""Unified settings for wifi-upload-server."""

import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict, empty when the file is not shipped."""
    if not pyproject_path.is_file():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("wifi-upload-server")
        except Exception:
            return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for the upload server."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "wifi-upload-server")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "Local Wi-Fi upload server")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080

    # Storage
    STORAGE_PATH: Path = BASE_DIR / "data" / "media"
    ALLOWED_EXTENSIONS: tuple[str, ...] = ("mp3", "m4a")

    # Request framing
    READ_CHUNK_SIZE: int = 64 * 1024
    MAX_HEADER_BYTES: int = 64 * 1024
    MAX_REQUEST_BYTES: int = 1024 * 1024 * 1024

    # Idle-body fallback: a body with neither Content-Length nor a multipart
    # terminator is treated as complete after this much silence, but only
    # once it holds IDLE_BODY_MIN_BYTES. Slow clients can be truncated.
    IDLE_BODY_TIMEOUT: float = 3.0
    IDLE_BODY_MIN_BYTES: int = 50_000
    IDLE_POLL_INTERVAL: float = 0.5

    # Connections
    KEEPALIVE_TIMEOUT: float = 30.0
    REAPER_INTERVAL: float = 5.0

    # Upload status board
    STATUS_GRACE_PERIOD: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()  # type: ignore

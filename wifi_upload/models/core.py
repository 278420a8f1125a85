"""Core models for request parsing and upload bookkeeping."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field


class BodyType(StrEnum):
    """How a handler parameter is filled from the request body."""

    PYDANTIC = "pydantic"
    MULTIPART = "multipart"


@dataclass(frozen=True, slots=True)
class FormField:
    """Text field of a multipart body. Payload is kept as raw bytes."""

    name: str
    data: bytes

    @property
    def value(self) -> str:
        return self.data.decode("utf-8", errors="replace").strip()


@dataclass(frozen=True, slots=True)
class FilePart:
    """File attachment of a multipart body."""

    field_name: str | None
    filename: str
    data: bytes

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot else ""


MultipartPart = FormField | FilePart


class UploadForm:
    """Decoded multipart/form-data body in order of appearance."""

    __slots__ = ("parts",)

    def __init__(self, parts: list[MultipartPart] | None = None) -> None:
        self.parts = parts or []

    def __bool__(self) -> bool:
        return bool(self.parts)

    def __iter__(self):
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.parts)

    def field(self, name: str) -> str | None:
        """Text value of the first form field with this name."""
        for part in self.parts:
            if isinstance(part, FormField) and part.name == name:
                return part.value
        return None

    @property
    def folder(self) -> str | None:
        return self.field("folder")

    @property
    def files(self) -> list[FilePart]:
        return [part for part in self.parts if isinstance(part, FilePart)]


class UploadStatus(StrEnum):
    """Lifecycle of a single uploaded file."""

    QUEUED = "queued"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def record_key(folder: str, filename: str) -> str:
    """Status board key; the same filename may be uploaded into several folders."""
    return f"{folder}/{filename}"


@dataclass(slots=True)
class UploadRecord:
    """Per-file upload outcome shown to observers until its grace period ends."""

    folder: str
    filename: str
    status: UploadStatus = UploadStatus.QUEUED
    progress: float | None = None
    reason: str | None = None

    @property
    def key(self) -> str:
        return record_key(self.folder, self.filename)


class CreateFolderRequest(BaseModel):
    """Body of POST /api/createFolder."""

    folderName: str = Field(min_length=1)
    action: Literal["createFolder"] | None = None
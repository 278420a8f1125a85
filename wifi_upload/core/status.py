"""Observable per-file upload status."""

import asyncio
import dataclasses
from collections.abc import Callable

from wifi_upload.models.core import UploadRecord, UploadStatus, record_key

Listener = Callable[[dict[str, UploadRecord]], None]


class UploadStatusBoard:
    """``folder/filename`` -> UploadRecord map that observers can subscribe to.

    A record goes queued -> uploading -> succeeded or failed; progress is
    0.0 while the file is written and 1.0 once it is stored. Finished
    records disappear after ``grace_period`` seconds so a UI can show the
    outcome briefly. Must be used from inside a running event loop.
    """

    def __init__(self, grace_period: float = 5.0) -> None:
        self.grace_period = grace_period
        self._records: dict[str, UploadRecord] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def get(self, folder: str, filename: str) -> UploadRecord | None:
        record = self._records.get(record_key(folder, filename))
        return dataclasses.replace(record) if record else None

    def snapshot(self) -> dict[str, UploadRecord]:
        return {key: dataclasses.replace(record) for key, record in self._records.items()}

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def queue(self, folder: str, filename: str) -> None:
        self._update(folder, filename, status=UploadStatus.QUEUED, progress=None, reason=None)

    def start(self, folder: str, filename: str) -> None:
        self._update(folder, filename, status=UploadStatus.UPLOADING, progress=0.0, reason=None)

    def succeed(self, folder: str, filename: str) -> None:
        key = self._update(folder, filename, status=UploadStatus.SUCCEEDED, progress=1.0, reason=None)
        self._expire_later(key)

    def fail(self, folder: str, filename: str, reason: str) -> None:
        key = self._update(folder, filename, status=UploadStatus.FAILED, reason=reason)
        self._expire_later(key)

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._records.clear()
        self._notify()

    def _update(self, folder: str, filename: str, **changes) -> str:
        key = record_key(folder, filename)
        if timer := self._timers.pop(key, None):
            timer.cancel()
        record = self._records.setdefault(key, UploadRecord(folder=folder, filename=filename))
        for name, value in changes.items():
            setattr(record, name, value)
        self._notify()
        return record.key

    def _expire_later(self, key: str) -> None:
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(self.grace_period, self._expire, key)

    def _expire(self, key: str) -> None:
        self._timers.pop(key, None)
        if self._records.pop(key, None) is not None:
            self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

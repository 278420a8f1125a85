"""Tests for the upload status board."""

import asyncio

from wifi_upload.core.status import UploadStatusBoard
from wifi_upload.models.core import UploadStatus


class TestTransitions:
    """Tests for per-file status changes."""

    async def test_lifecycle(self, status_board: UploadStatusBoard) -> None:
        """Verify queued -> uploading -> succeeded with matching progress."""
        status_board.queue("Rock", "a.mp3")
        record = status_board.get("Rock", "a.mp3")
        assert (record.status, record.progress) == (UploadStatus.QUEUED, None)

        status_board.start("Rock", "a.mp3")
        record = status_board.get("Rock", "a.mp3")
        assert (record.status, record.progress) == (UploadStatus.UPLOADING, 0.0)

        status_board.succeed("Rock", "a.mp3")
        record = status_board.get("Rock", "a.mp3")
        assert (record.status, record.progress) == (UploadStatus.SUCCEEDED, 1.0)
        assert (record.folder, record.filename, record.key) == ("Rock", "a.mp3", "Rock/a.mp3")

    async def test_failure_keeps_reason(self, status_board: UploadStatusBoard) -> None:
        """Verify a failed record carries the storage error."""
        status_board.start("Rock", "a.mp3")
        status_board.fail("Rock", "a.mp3", "Disk full")
        record = status_board.get("Rock", "a.mp3")
        assert (record.status, record.reason) == (UploadStatus.FAILED, "Disk full")

    async def test_same_name_in_two_folders(self, status_board: UploadStatusBoard) -> None:
        """Verify equal filenames in different folders are tracked apart."""
        status_board.start("Rock", "a.mp3")
        status_board.start("Jazz", "a.mp3")
        status_board.fail("Jazz", "a.mp3", "Disk full")

        assert len(status_board) == 2
        assert status_board.get("Rock", "a.mp3").status is UploadStatus.UPLOADING
        assert status_board.get("Jazz", "a.mp3").status is UploadStatus.FAILED
        assert sorted(status_board.snapshot()) == ["Jazz/a.mp3", "Rock/a.mp3"]

    async def test_snapshot_is_a_copy(self, status_board: UploadStatusBoard) -> None:
        """Verify callers cannot change records through a snapshot."""
        status_board.queue("Rock", "a.mp3")
        snapshot = status_board.snapshot()
        snapshot["Rock/a.mp3"].status = UploadStatus.FAILED
        assert status_board.get("Rock", "a.mp3").status is UploadStatus.QUEUED

    async def test_unknown_file(self, status_board: UploadStatusBoard) -> None:
        """Verify lookups of untracked files return None."""
        assert status_board.get("Rock", "missing.mp3") is None
        assert "Rock/missing.mp3" not in status_board


class TestExpiry:
    """Finished records linger for the grace period only."""

    async def test_finished_records_expire(self, status_board: UploadStatusBoard) -> None:
        """Verify succeeded and failed records are dropped after the grace period."""
        status_board.start("Rock", "ok.mp3")
        status_board.succeed("Rock", "ok.mp3")
        status_board.start("Rock", "bad.mp3")
        status_board.fail("Rock", "bad.mp3", "boom")
        assert len(status_board) == 2

        await asyncio.sleep(status_board.grace_period * 3)
        assert len(status_board) == 0

    async def test_restart_cancels_expiry(self, status_board: UploadStatusBoard) -> None:
        """Verify uploading the same file again keeps its record."""
        status_board.succeed("Rock", "a.mp3")
        status_board.start("Rock", "a.mp3")

        await asyncio.sleep(status_board.grace_period * 3)
        assert status_board.get("Rock", "a.mp3").status is UploadStatus.UPLOADING

    async def test_in_flight_records_stay(self, status_board: UploadStatusBoard) -> None:
        """Verify queued records do not expire."""
        status_board.queue("Rock", "a.mp3")
        await asyncio.sleep(status_board.grace_period * 3)
        assert "Rock/a.mp3" in status_board

    async def test_clear_cancels_timers(self) -> None:
        """Verify clear removes all data and pending expiries."""
        board = UploadStatusBoard(grace_period=10.0)
        board.succeed("Rock", "a.mp3")
        board.clear()
        assert len(board) == 0
        assert board._timers == {}


class TestListeners:
    """Tests for change notifications."""

    async def test_listener_gets_snapshots(self, status_board: UploadStatusBoard) -> None:
        """Verify every change and the expiry are reported."""
        seen = []
        status_board.subscribe(lambda snapshot: seen.append({k: v.status for k, v in snapshot.items()}))

        status_board.queue("Rock", "a.mp3")
        status_board.start("Rock", "a.mp3")
        status_board.succeed("Rock", "a.mp3")
        await asyncio.sleep(status_board.grace_period * 3)

        assert seen == [
            {"Rock/a.mp3": UploadStatus.QUEUED},
            {"Rock/a.mp3": UploadStatus.UPLOADING},
            {"Rock/a.mp3": UploadStatus.SUCCEEDED},
            {},
        ]

    async def test_unsubscribe(self, status_board: UploadStatusBoard) -> None:
        """Verify an unsubscribed listener hears nothing more."""
        seen = []
        unsubscribe = status_board.subscribe(seen.append)
        status_board.queue("Rock", "a.mp3")
        unsubscribe()
        status_board.queue("Rock", "b.mp3")
        assert len(seen) == 1

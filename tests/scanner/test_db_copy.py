"""Tests for database snapshot utility."""

from __future__ import annotations

from pathlib import Path

import pytest

from cookiebridge.scanner.db_copy import (
    TEMP_PREFIX,
    SnapshotError,
    cleanup_temp_db,
    copy_db_to_temp,
    snapshot_db,
)


class TestCopyDbToTemp:
    """Tests for copy_db_to_temp function."""

    def test_copies_database_file(self, tmp_path: Path) -> None:
        """Copies database file."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"database content")

        temp_path = copy_db_to_temp(db_path)

        try:
            assert temp_path.exists()
            assert temp_path.read_bytes() == b"database content"
            assert temp_path.name == "Cookies"
            assert temp_path.parent.name.startswith(TEMP_PREFIX)
        finally:
            cleanup_temp_db(temp_path)

    @pytest.mark.parametrize("suffix", ["-wal", "-shm"])
    def test_copies_sidecars(self, tmp_path: Path, suffix: str) -> None:
        """Write-ahead sidecars travel with the snapshot."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"database content")
        Path(str(db_path) + suffix).write_bytes(b"sidecar content")

        temp_path = copy_db_to_temp(db_path)

        try:
            sidecar = Path(str(temp_path) + suffix)
            assert sidecar.read_bytes() == b"sidecar content"
        finally:
            cleanup_temp_db(temp_path)

    def test_handles_missing_sidecars(self, tmp_path: Path) -> None:
        """Handles missing sidecars."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"database content")

        temp_path = copy_db_to_temp(db_path)

        try:
            assert not Path(str(temp_path) + "-wal").exists()
            assert not Path(str(temp_path) + "-shm").exists()
        finally:
            cleanup_temp_db(temp_path)

    def test_each_call_gets_own_directory(self, tmp_path: Path) -> None:
        """Each call gets own directory."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"x")

        first = copy_db_to_temp(db_path)
        second = copy_db_to_temp(db_path)

        try:
            assert first.parent != second.parent
        finally:
            cleanup_temp_db(first)
            cleanup_temp_db(second)

    def test_raises_for_nonexistent_db(self, tmp_path: Path) -> None:
        """Raises for nonexistent DB."""
        with pytest.raises(SnapshotError):
            copy_db_to_temp(tmp_path / "Nonexistent")

    def test_snapshot_error_is_os_error(self) -> None:
        """Snapshot error is OS error."""
        assert issubclass(SnapshotError, OSError)


class TestCleanupTempDb:
    """Tests for cleanup_temp_db function."""

    def test_removes_snapshot_directory(self, tmp_path: Path) -> None:
        """Removes snapshot directory."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"content")
        Path(str(db_path) + "-wal").write_bytes(b"wal")
        temp_path = copy_db_to_temp(db_path)

        cleanup_temp_db(temp_path)

        assert not temp_path.parent.exists()

    def test_refuses_non_snapshot_directory(self, tmp_path: Path) -> None:
        """Only directories created by copy_db_to_temp are removed."""
        victim = tmp_path / "important" / "Cookies"
        victim.parent.mkdir()
        victim.write_bytes(b"keep me")

        cleanup_temp_db(victim)

        assert victim.exists()

    def test_handles_already_removed(self, tmp_path: Path) -> None:
        """Handles already removed."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"content")
        temp_path = copy_db_to_temp(db_path)
        cleanup_temp_db(temp_path)

        # Should not raise
        cleanup_temp_db(temp_path)


class TestSnapshotDb:
    """Tests for the snapshot_db context manager."""

    def test_yields_copy_and_cleans_up(self, tmp_path: Path) -> None:
        """Yields copy and cleans up."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"content")

        with snapshot_db(db_path) as temp_path:
            assert temp_path.read_bytes() == b"content"
            assert temp_path != db_path

        assert not temp_path.parent.exists()
        assert db_path.exists()

    def test_cleans_up_on_exception(self, tmp_path: Path) -> None:
        """Cleans up on exception."""
        db_path = tmp_path / "Cookies"
        db_path.write_bytes(b"content")

        with pytest.raises(RuntimeError):
            with snapshot_db(db_path) as temp_path:
                raise RuntimeError("boom")

        assert not temp_path.parent.exists()

    def test_missing_source_raises_before_yield(self, tmp_path: Path) -> None:
        """Missing source raises before yield."""
        with pytest.raises(SnapshotError):
            with snapshot_db(tmp_path / "missing"):
                pytest.fail("should not enter the block")

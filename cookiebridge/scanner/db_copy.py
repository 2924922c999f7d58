"""Database snapshot utility for safe cookie reading."""

from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

# Prefix for per-call snapshot directories
TEMP_PREFIX = "cookiebridge-"

# Write-ahead sidecars that must travel with a SQLite database
SIDECAR_SUFFIXES = ("-wal", "-shm")


class SnapshotError(OSError):
    """Raised when a store cannot be copied into a snapshot."""


def copy_db_to_temp(db_path: Path) -> Path:
    """
    Copy a store file into a fresh temporary directory for safe reading.

    This avoids "database is locked" errors and half-written pages when the
    browser is running. Each call gets its own directory, so concurrent
    calls never share a snapshot.

    Args:
        db_path: Path to the original database file.

    Returns:
        Path to the temporary copy.

    Raises:
        SnapshotError: If the source doesn't exist or copying fails.
    """
    if not db_path.exists():
        raise SnapshotError(f"Database not found: {db_path}")

    temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    temp_file = temp_dir / db_path.name

    logger.debug("Copying database %s to %s", db_path, temp_file)
    try:
        shutil.copyfile(db_path, temp_file)
    except OSError as e:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise SnapshotError(f"Failed to copy {db_path.name}: {e}") from e

    # Also copy WAL and SHM files if they exist (for WAL mode databases)
    for suffix in SIDECAR_SUFFIXES:
        sidecar = Path(str(db_path) + suffix)
        if not sidecar.exists():
            continue
        try:
            shutil.copyfile(sidecar, Path(str(temp_file) + suffix))
            logger.debug("Copied sidecar: %s", sidecar.name)
        except OSError as e:
            logger.debug("Skipping sidecar %s: %s", sidecar.name, e)

    return temp_file


def cleanup_temp_db(temp_path: Path) -> None:
    """
    Remove a snapshot created by copy_db_to_temp, including its directory.

    Args:
        temp_path: Path returned by copy_db_to_temp.
    """
    temp_dir = temp_path.parent
    if not temp_dir.name.startswith(TEMP_PREFIX):
        logger.warning("Refusing to remove non-snapshot directory: %s", temp_dir)
        return
    try:
        shutil.rmtree(temp_dir)
        logger.debug("Cleaned up snapshot: %s", temp_dir)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to cleanup snapshot %s: %s", temp_dir, e)


@contextmanager
def snapshot_db(db_path: Path) -> Iterator[Path]:
    """
    Scoped snapshot of a store file.

    The snapshot directory is removed on every exit path, including
    exceptions raised while the snapshot is in use.

    Raises:
        SnapshotError: If the snapshot cannot be created.
    """
    temp_path = copy_db_to_temp(db_path)
    try:
        yield temp_path
    finally:
        cleanup_temp_db(temp_path)

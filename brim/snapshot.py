"""
Read-only snapshots of foreign browser databases.

Browsers hold locks on their SQLite files while running, so we never open
the live file. Each read copies it to a private temp file, opens the copy
read-only, and removes the copy on every exit path.
"""
import logging
import os
import shutil
import sqlite3
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

# Sidecar files SQLite may create next to a database
_SIDECARS = ("-wal", "-shm", "-journal")


@contextmanager
def snapshot(path: Union[str, Path], temp_dir: Optional[str] = None) -> Iterator[Path]:
    """
    Copy a file to a private temporary location for the duration of a block.

    A ``-wal`` sidecar is copied too, so recent writes of a running browser
    are visible in the copy.

    Args:
        path: File to copy
        temp_dir: Directory for the copy (system default if None)

    Yields:
        Path of the temporary copy
    """
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"Database not found: {source}")

    temp_fd, temp_path = tempfile.mkstemp(prefix="brim-", suffix=".sqlite", dir=temp_dir)
    os.close(temp_fd)
    copy = Path(temp_path)

    try:
        shutil.copy2(source, copy)
        wal = source.with_name(source.name + "-wal")
        if wal.is_file():
            shutil.copy2(wal, copy.with_name(copy.name + "-wal"))
        logger.debug(f"Snapshot {source} -> {copy}")
        yield copy
    finally:
        for candidate in [copy] + [copy.with_name(copy.name + s) for s in _SIDECARS]:
            candidate.unlink(missing_ok=True)


@contextmanager
def open_snapshot(path: Union[str, Path], temp_dir: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """
    Open a read-only SQLite connection on a snapshot copy of ``path``.

    Rows are returned as :class:`sqlite3.Row`. The connection is closed
    before the copy is deleted.
    """
    with snapshot(path, temp_dir) as copy:
        conn = sqlite3.connect(f"{copy.as_uri()}?mode=ro", uri=True)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

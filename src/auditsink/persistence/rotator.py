"""Active log file ownership with day and size based rotation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import BinaryIO

from auditsink.errors import LogFileError

logger = logging.getLogger(__name__)

FILE_PREFIX = "audit_"
LOG_SUFFIX = ".log"


@dataclass
class ActiveFile:
    """The file currently receiving appends."""

    path: Path
    date_key: str
    handle: BinaryIO
    size: int = 0


class FileRotator:
    """Keeps exactly one dated log file open and replaces it when needed.

    Callers must serialize access; the rotator itself holds no lock.
    """

    def __init__(self, log_dir: Path, max_bytes: int, tz: tzinfo) -> None:
        self._dir = Path(log_dir)
        self._max_bytes = max_bytes
        self._tz = tz
        self._active: ActiveFile | None = None

    @property
    def active_path(self) -> Path | None:
        return self._active.path if self._active else None

    def path_for(self, now: datetime) -> Path:
        """Path of the active file for the calendar day of ``now``."""
        local = now.astimezone(self._tz)
        return self._dir / f"{FILE_PREFIX}{local:%Y-%m-%d}{LOG_SUFFIX}"

    def ensure_file(self, now: datetime) -> ActiveFile:
        """Make sure the open file is today's and below the size cap.

        Must run before every append. When the size cap is exceeded the
        current file is archived and the next entry goes to a fresh file.
        """
        local = now.astimezone(self._tz)
        expected = self.path_for(local)

        if self._active is None or self._active.path != expected:
            self._close_quietly()
            self._active = self._open(expected, f"{local:%Y-%m-%d}")

        active = self._active
        try:
            active.size = os.fstat(active.handle.fileno()).st_size
        except OSError as e:
            raise LogFileError(f"Error inspecting log file {active.path}: {e}") from e

        if self._max_bytes > 0 and active.size > self._max_bytes:
            self._rotate_by_size(local)

        return self._active

    def close(self) -> None:
        """Close the active file, if any."""
        self._close_quietly()

    def _open(self, path: Path, date_key: str) -> ActiveFile:
        try:
            handle = open(path, "ab", buffering=0)
        except OSError as e:
            raise LogFileError(f"Error opening log file {path}: {e}") from e
        logger.debug(f"Opened log file {path}")
        return ActiveFile(path=path, date_key=date_key, handle=handle)

    def _close_quietly(self) -> None:
        if self._active is None:
            return
        try:
            self._active.handle.close()
        except OSError as e:
            logger.warning(f"Error closing stale log file {self._active.path}: {e}")
        self._active = None

    def _rotate_by_size(self, local: datetime) -> None:
        current = self._active
        self._close_quietly()

        archive = self._archive_path(local)
        try:
            os.rename(current.path, archive)
        except OSError as e:
            raise LogFileError(f"Error archiving log file {current.path}: {e}") from e

        self._active = self._open(current.path, current.date_key)
        logger.info(
            "Rotated %s to %s after reaching %d bytes",
            current.path.name,
            archive.name,
            current.size,
        )

    def _archive_path(self, local: datetime) -> Path:
        """Archive name for a size rotation; never reuses an existing name."""
        stem = f"{FILE_PREFIX}{local:%Y-%m-%d}_{local:%H-%M-%S}"
        candidate = self._dir / f"{stem}{LOG_SUFFIX}"
        counter = 1
        while candidate.exists():
            candidate = self._dir / f"{stem}_{counter}{LOG_SUFFIX}"
            counter += 1
        return candidate

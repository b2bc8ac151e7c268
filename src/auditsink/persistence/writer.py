"""Serialized, durable appends of audit entries."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from datetime import datetime

from auditsink.errors import LogWriteError
from auditsink.models.entry import AuditEntry
from auditsink.persistence.rotator import ActiveFile, FileRotator

logger = logging.getLogger(__name__)


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        if written == 0:
            raise OSError("short write to log file")
        view = view[written:]


class AppendWriter:
    """Appends one JSON line per entry through the rotator.

    A single lock covers the rotation check, the write and the fsync, so no
    two appends interleave and none sees a handle mid-replacement.
    """

    def __init__(self, rotator: FileRotator, clock: Callable[[], datetime]) -> None:
        self._rotator = rotator
        self._clock = clock
        self._lock = threading.Lock()

    def append(
        self,
        entry: AuditEntry,
        stamp: Callable[[datetime], str] | None = None,
    ) -> AuditEntry:
        """Write ``entry`` and fsync it; raises on any storage failure.

        With ``stamp``, the timestamp is taken from the same clock reading
        that picks the file, so an entry always lands in the file for its
        own day. Returns the entry as written.
        """
        with self._lock:
            now = self._clock()
            active = self._rotator.ensure_file(now)
            if stamp is not None:
                entry = entry.model_copy(update={"timestamp": stamp(now)})
            self._write_line(active, entry.to_line())
        return entry

    def close(self) -> None:
        with self._lock:
            self._rotator.close()

    def _write_line(self, active: ActiveFile, data: bytes) -> None:
        fd = active.handle.fileno()
        start = active.size
        try:
            _write_all(fd, data)
        except OSError as e:
            self._truncate(active, start)
            raise LogWriteError(f"Error writing to log file {active.path.name}: {e}") from e
        active.size = start + len(data)

        try:
            os.fsync(fd)
        except OSError as e:
            raise LogWriteError(f"Error flushing log file {active.path.name}: {e}") from e

    @staticmethod
    def _truncate(active: ActiveFile, size: int) -> None:
        """Drop any bytes a failed write managed to emit."""
        try:
            os.ftruncate(active.handle.fileno(), size)
        except OSError as e:
            logger.error(f"Could not roll back partial write to {active.path}: {e}")

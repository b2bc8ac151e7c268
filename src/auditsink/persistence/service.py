"""Persistence facade: the single entry point for writing audit records."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from auditsink.config import Settings
from auditsink.errors import LogDirectoryError
from auditsink.models.entry import AuditEntry, LogRequest
from auditsink.persistence.codec import build_entry, format_timestamp
from auditsink.persistence.rotator import LOG_SUFFIX, FileRotator
from auditsink.persistence.sweeper import RetentionSweeper
from auditsink.persistence.writer import AppendWriter

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timezone(name: str) -> tzinfo:
    """Load an IANA zone, falling back to UTC for unknown identifiers."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Unknown time zone {name!r}, using UTC: {e}")
        return timezone.utc


class AuditLogService:
    """Composes the codec, rotator, writer and retention sweeper."""

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], datetime] | None = None,
        start_sweeper: bool = True,
    ) -> None:
        try:
            settings.ensure_dirs()
        except OSError as e:
            raise LogDirectoryError(f"Error creating log directory {settings.log_dir}: {e}") from e

        self._settings = settings
        self._clock = clock or _utc_now
        self._tz = resolve_timezone(settings.timezone)

        self._rotator = FileRotator(settings.log_dir, settings.max_log_size, self._tz)
        self._writer = AppendWriter(self._rotator, self._clock)
        self._sweeper = RetentionSweeper(
            settings.log_dir,
            settings.log_file_lifetime,
            interval=settings.cleanup_interval_seconds,
        )
        if start_sweeper:
            self._sweeper.start()

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    @property
    def sweeper(self) -> RetentionSweeper:
        return self._sweeper

    def write_log(self, request: LogRequest) -> AuditEntry:
        """Normalize and durably append one submission.

        Raises LogFileError or LogWriteError when storage fails; a failed
        call leaves no partial line behind.
        """
        entry = build_entry(request, self._clock().astimezone(self._tz))
        return self._writer.append(entry, stamp=self._stamp)

    def _stamp(self, now: datetime) -> str:
        return format_timestamp(now.astimezone(self._tz))

    def stats(self) -> dict[str, Any]:
        """Summarize the log files currently on disk."""
        total_size = 0
        file_count = 0
        for path in self._settings.log_dir.iterdir():
            if path.is_dir() or not path.name.endswith(LOG_SUFFIX):
                continue
            try:
                total_size += path.stat().st_size
            except OSError as e:
                logger.debug(f"Stat failed for {path}: {e}")
                continue
            file_count += 1

        return {
            "total_files": file_count,
            "total_size_mb": total_size / 1024 / 1024,
            "log_directory": str(self._settings.log_dir),
            "lifetime_hours": self._settings.log_file_lifetime_hours,
            "max_size_mb": self._settings.max_log_size / 1024 / 1024,
        }

    def health(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "retention_sweeper": self._sweeper.is_running,
        }

    def close(self) -> None:
        """Stop the sweeper and release the active file."""
        self._sweeper.stop()
        self._writer.close()

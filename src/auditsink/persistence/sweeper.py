"""Background deletion of aged log files."""

from __future__ import annotations

import logging
import stat
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

from auditsink.persistence.rotator import LOG_SUFFIX

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Periodically removes ``.log`` files older than ``max_age``.

    Works only from directory listings and file metadata; it never touches
    the writer's lock or handle.
    """

    def __init__(
        self,
        log_dir: Path,
        max_age: timedelta,
        interval: float = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._dir = Path(log_dir)
        self._max_age = max_age
        self._interval = interval
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def sweep(self, now: float | None = None) -> list[str]:
        """Delete expired log files once. Returns the deleted file names."""
        current = self._clock() if now is None else now
        max_age = self._max_age.total_seconds()

        try:
            candidates = list(self._dir.iterdir())
        except OSError as e:
            logger.error(f"Error reading log directory {self._dir}: {e}")
            return []

        deleted: list[str] = []
        for path in candidates:
            if not path.name.endswith(LOG_SUFFIX):
                continue
            try:
                info = path.stat()
            except OSError as e:
                logger.warning(f"Skipping {path.name}, could not stat it: {e}")
                continue

            if stat.S_ISDIR(info.st_mode) or current - info.st_mtime <= max_age:
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Error deleting old log file {path}: {e}")
                continue
            deleted.append(path.name)
            logger.info(f"Deleted old log file {path}")

        return deleted

    def start(self) -> None:
        """Start sweeping every ``interval`` seconds on a daemon thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="auditsink-retention-sweeper",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Retention sweep failed")

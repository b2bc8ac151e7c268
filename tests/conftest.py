"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from auditsink.config import Settings


class FakeClock:
    """Controllable replacement for ``datetime.now(timezone.utc)``."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """A clock parked at 10:15:30 UTC on 1 March 2026."""
    return FakeClock(datetime(2026, 3, 1, 10, 15, 30, tzinfo=timezone.utc))


@pytest.fixture
def log_dir(tmp_path):
    """Create a temporary log directory."""
    path = tmp_path / "logs"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(log_dir):
    """Create settings pointing to the temp log directory."""
    return Settings(
        log_dir=log_dir,
        timezone="UTC",
        max_log_size_mb=1,
        log_file_lifetime_hours=48,
        cleanup_interval_seconds=3600,
    )

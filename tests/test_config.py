"""Tests for configuration loading."""

import json
from datetime import timedelta
from pathlib import Path

from auditsink.config import LEGACY_ENV_NAMES, Settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in LEGACY_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    cfg = Settings()
    assert cfg.port == 8080
    assert cfg.log_dir == Path("./logs")
    assert cfg.timezone == "Europe/Madrid"
    assert cfg.log_file_lifetime == timedelta(hours=72)
    assert cfg.max_log_size == 100 * 1024 * 1024
    assert cfg.cleanup_interval_seconds == 3600


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("AUDIT_PORT", "9090")
    monkeypatch.setenv("AUDIT_LOG_DIR", "/var/log/audit")
    monkeypatch.setenv("AUDIT_MAX_LOG_SIZE_MB", "5")
    cfg = Settings()
    assert cfg.port == 9090
    assert cfg.log_dir == Path("/var/log/audit")
    assert cfg.max_log_size == 5 * 1024 * 1024


def test_config_json_wins_over_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.json").write_text(json.dumps({"log_file_lifetime_hours": 24, "timezone": "UTC"}))
    monkeypatch.setenv("AUDIT_LOG_FILE_LIFETIME_HOURS", "12")
    cfg = Settings()
    assert cfg.log_file_lifetime == timedelta(hours=24)
    assert cfg.timezone == "UTC"


def test_byte_cap_takes_precedence(tmp_path):
    cfg = Settings(max_log_size_mb=10, max_log_size_bytes=4096)
    assert cfg.max_log_size == 4096
    assert Settings(max_log_size_mb=0).max_log_size == 0


def test_ensure_dirs(tmp_path):
    cfg = Settings(log_dir=tmp_path / "nested" / "logs")
    cfg.ensure_dirs()
    assert (tmp_path / "nested" / "logs").is_dir()


def test_legacy_env_names(monkeypatch, tmp_path):
    """Unprefixed variables from earlier deployments are still honoured."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("LOG_DIR", "/srv/audit")
    monkeypatch.setenv("LOG_LIFETIME_HOURS", "24")
    monkeypatch.setenv("MAX_LOG_SIZE_MB", "5")
    monkeypatch.setenv("TIMEZONE", "UTC")
    cfg = Settings()
    assert cfg.port == 9000
    assert cfg.log_dir == Path("/srv/audit")
    assert cfg.log_file_lifetime == timedelta(hours=24)
    assert cfg.max_log_size == 5 * 1024 * 1024
    assert cfg.timezone == "UTC"


def test_prefixed_env_and_config_json_beat_legacy_names(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("AUDIT_PORT", "9100")
    monkeypatch.setenv("TIMEZONE", "Asia/Tokyo")
    (tmp_path / "config.json").write_text(json.dumps({"timezone": "UTC"}))
    cfg = Settings()
    assert cfg.port == 9100
    assert cfg.timezone == "UTC"


def test_init_arguments_beat_legacy_names(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_DIR", "/srv/audit")
    assert Settings(log_dir=tmp_path).log_dir == tmp_path

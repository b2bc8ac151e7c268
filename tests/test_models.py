"""Tests for pydantic models."""

import json

import pytest
from pydantic import ValidationError

from auditsink.models.entry import AuditEntry, LogRequest


def test_log_request_defaults():
    """Every field is optional."""
    request = LogRequest()
    assert request.user_id == ""
    assert request.response == 0
    assert request.error is None
    assert request.query_base64 is False
    assert request.body is None


def test_log_request_accepts_any_body():
    assert LogRequest(body=[1, "two"]).body == [1, "two"]
    assert LogRequest(body="text").body == "text"


def test_audit_entry_is_frozen():
    entry = AuditEntry(timestamp="01-03-2026 10:15:30+00", action="LOGIN")
    with pytest.raises(ValidationError):
        entry.action = "LOGOUT"


def test_to_line_is_single_json_record():
    """Embedded newlines are escaped, so one entry is always one line."""
    entry = AuditEntry(timestamp="t", action="NOTE", body="line one\nline two")
    line = entry.to_line()
    assert line.endswith(b"\n")
    assert line.count(b"\n") == 1
    decoded = json.loads(line)
    assert decoded["body"] == "line one\nline two"
    assert "error" not in decoded


def test_to_line_field_order():
    entry = AuditEntry(timestamp="t", user_id="u", action="a", response=201, error="e")
    assert list(json.loads(entry.to_line())) == [
        "timestamp",
        "user_id",
        "action",
        "response",
        "error",
        "parameters",
        "query",
        "body",
        "additional_info",
    ]

"""Pydantic models for submitted and persisted audit records."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class LogRequest(BaseModel):
    """A submission as received from a caller.

    Every field is optional; missing identifiers are persisted as empty text.
    ``body`` may be absent, plain text, or any JSON value.
    """

    user_id: str = ""
    action: str = ""
    response: int = 0
    error: str | None = None
    parameters: str = ""
    query: str = ""
    query_base64: bool = False
    body: Any = None
    additional_info: str = ""


class AuditEntry(BaseModel):
    """A normalized record, ready to be written as one line."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    user_id: str = ""
    action: str = ""
    response: int = 0
    error: str | None = None
    parameters: str = ""
    query: str = ""
    body: str = ""
    additional_info: str = ""

    def to_line(self) -> bytes:
        """Serialize to a single newline-terminated JSON record."""
        return self.model_dump_json(exclude_none=True).encode("utf-8") + b"\n"

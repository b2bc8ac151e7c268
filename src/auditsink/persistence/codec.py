"""Normalization of inbound submissions into persistable entries."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from datetime import datetime
from typing import Any

from auditsink.models.entry import AuditEntry, LogRequest

logger = logging.getLogger(__name__)

# Any surrogate left in a decoded str is unpaired and cannot be encoded as UTF-8
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def scrub_text(text: str, field: str = "text") -> str:
    """Replace unpaired surrogates with U+FFFD so the text can be written."""
    cleaned, count = _LONE_SURROGATE.subn("\ufffd", text)
    if count:
        logger.warning("Replaced %d unpaired surrogate(s) in %s", count, field)
    return cleaned


def decode_query(text: str, is_base64: bool) -> str:
    """Decode a base64 query, returning the original text if it isn't valid."""
    if not is_base64:
        return text
    try:
        return base64.b64decode(text, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        logger.warning("Could not decode base64 query, storing it as received: %s", e)
        return text


def canonicalize_body(value: Any) -> str:
    """Render a body payload as stable text.

    Text passes through untouched. Structured values become compact JSON with
    sorted keys; values JSON can't represent fall back to ``str()``.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(
            value,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        logger.warning("Could not serialize body, storing its string form: %s", e)
        return str(value)


def format_timestamp(moment: datetime) -> str:
    """Format as ``DD-MM-YYYY HH:MM:SS+HH`` (offset minutes kept when non-zero)."""
    offset = moment.strftime("%z")
    if offset.endswith("00"):
        offset = offset[:-2]
    return moment.strftime("%d-%m-%Y %H:%M:%S") + offset


def build_entry(request: LogRequest, now: datetime) -> AuditEntry:
    """Normalize a submission into an immutable entry stamped with ``now``."""
    return AuditEntry(
        timestamp=format_timestamp(now),
        user_id=scrub_text(request.user_id, "user_id"),
        action=scrub_text(request.action, "action"),
        response=request.response,
        error=scrub_text(request.error, "error") if request.error is not None else None,
        parameters=scrub_text(request.parameters, "parameters"),
        query=scrub_text(decode_query(request.query, request.query_base64), "query"),
        body=scrub_text(canonicalize_body(request.body), "body"),
        additional_info=scrub_text(request.additional_info, "additional_info"),
    )

"""Timestamp normalization and wire formatting.

Responsibilities:
- Coerce timestamps to UTC before they enter a request.
- Render the RFC-1123 date used for both signing and the `x-ms-date` header.
- Render the ISO-8601 form embedded in the JSON body.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime


def _is_utc(value: datetime) -> bool:
    """Return whether an aware datetime is already tagged with a zero offset."""

    return value.tzinfo is not None and value.utcoffset() == timedelta(0)


def normalize_timestamp(value: datetime) -> datetime:
    """Return `value` converted to UTC.

    Naive values are interpreted as local time. Values already tagged UTC are
    returned unchanged, which makes the operation idempotent.
    """

    if _is_utc(value):
        return value
    return value.astimezone(timezone.utc)


def to_wire_format(value: datetime) -> str:
    """Render `value` as an RFC-1123 date string in GMT notation."""

    normalized = normalize_timestamp(value).replace(tzinfo=timezone.utc)
    return format_datetime(normalized, usegmt=True)


def to_body_format(value: datetime) -> str:
    """Render `value` as ISO-8601 UTC text with a `Z` suffix."""

    normalized = normalize_timestamp(value).replace(tzinfo=None)
    return f"{normalized.isoformat()}Z"


def parse_timestamp(text: str) -> datetime:
    """Parse ISO-8601 text, accepting a trailing `Z` as UTC.

    Raises:
        ValueError: If `text` is not a valid ISO-8601 timestamp.
    """

    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = f"{candidate[:-1]}+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO-8601 timestamp `{text}`.") from exc


def utc_now() -> datetime:
    """Return the current time tagged UTC."""

    return datetime.now(timezone.utc)

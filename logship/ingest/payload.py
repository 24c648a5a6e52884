"""JSON body serialization for a single log record.

Responsibilities:
- Embed the normalized timestamp under the configured field name.
- Serialize the record once into the exact bytes that are signed and sent.
"""

from __future__ import annotations

from datetime import datetime
import json
import math
from typing import Any, Mapping

from ..errors import SerializationError
from .timestamps import to_body_format

DEFAULT_TIMESTAMP_FIELD = "DateTime"


def _coerce_value(key: str, value: Any) -> Any:
    """Return a JSON-ready scalar or raise for values outside the record scalar set."""

    if isinstance(value, datetime):
        return to_body_format(value)
    if isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SerializationError(
                f"Record field `{key}` holds a non-finite number ({value!r}).",
                key=key,
            )
        return value
    raise SerializationError(
        f"Record field `{key}` holds unsupported type `{type(value).__name__}`; "
        "expected a string, number, boolean, or datetime.",
        key=key,
    )


def build_body_mapping(
    record: Mapping[str, Any],
    timestamp: datetime,
    *,
    timestamp_field: str = DEFAULT_TIMESTAMP_FIELD,
) -> dict[str, Any]:
    """Return a JSON-ready copy of `record` with the timestamp field set.

    Caller keys keep their insertion order; an existing timestamp field is
    overwritten in place, otherwise it is appended last.
    """

    body: dict[str, Any] = {}
    for key, value in record.items():
        if not isinstance(key, str):
            raise SerializationError(
                f"Record keys must be strings, got `{type(key).__name__}`.",
            )
        body[key] = _coerce_value(key, value)
    body[timestamp_field] = to_body_format(timestamp)
    return body


def serialize_record(
    record: Mapping[str, Any],
    timestamp: datetime,
    *,
    timestamp_field: str = DEFAULT_TIMESTAMP_FIELD,
) -> bytes:
    """Serialize `record` plus the timestamp field into UTF-8 JSON bytes."""

    body = build_body_mapping(record, timestamp, timestamp_field=timestamp_field)
    text = json.dumps(
        body,
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    )
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise SerializationError("Record text is not encodable as UTF-8.") from exc

"""Signed ingestion client and its building blocks."""

from .client import API_VERSION, LogShippingClient, send_log_record
from .payload import serialize_record
from .signature import build_canonical_string, sign
from .timestamps import normalize_timestamp, to_wire_format

__all__ = [
    "API_VERSION",
    "LogShippingClient",
    "build_canonical_string",
    "normalize_timestamp",
    "send_log_record",
    "serialize_record",
    "sign",
    "to_wire_format",
]

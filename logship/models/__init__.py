"""Data models used across the log shipping client."""

from .datatypes import Credentials, LogRecord, LogScalar, SignedRequest

__all__ = [
    "Credentials",
    "LogRecord",
    "LogScalar",
    "SignedRequest",
]

"""Core datatypes shared across logship modules.

Responsibilities:
- Represent the immutable values exchanged between shipping stages.
- Keep secret material out of `repr` output and diagnostics.

Key types:
- `LogRecord`, `LogScalar`, `Credentials`, and `SignedRequest`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, MutableMapping, Union

LogScalar = Union[str, int, float, bool, datetime]
"""Value types accepted in a log record."""

LogRecord = MutableMapping[str, LogScalar]
"""Ordered string-keyed telemetry event; `dict` preserves insertion order."""


@dataclass(frozen=True, slots=True)
class Credentials:
    """Workspace identity and shared key used to sign ingestion requests.

    Attributes:
        workspace_id: Log Analytics workspace (customer) identifier.
        shared_key: Base64-encoded workspace key used as the HMAC key.
    """

    workspace_id: str
    shared_key: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """A fully assembled ingestion request, built fresh for each send.

    Attributes:
        uri: Target URI including the API version query.
        headers: Request headers, including the `Authorization` signature.
        body: Serialized UTF-8 JSON body whose length was signed.
    """

    uri: str
    headers: Mapping[str, str]
    body: bytes

    @property
    def content_length(self) -> int:
        """Return the byte length of the body."""

        return len(self.body)

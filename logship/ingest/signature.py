"""Shared-key request signing for the ingestion API.

Responsibilities:
- Build the canonical string covered by the request signature.
- Compute the `SharedKey` authorization value with HMAC-SHA256.
- Reject malformed shared keys before any request is attempted.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac

from ..errors import ConfigurationError
from ..models.datatypes import Credentials


def build_canonical_string(
    method: str,
    content_length: int,
    content_type: str,
    date: str,
    resource: str,
) -> str:
    """Return the newline-joined string the service recomputes to verify a request."""

    return "\n".join(
        (
            method,
            str(content_length),
            content_type,
            f"x-ms-date:{date}",
            resource,
        )
    )


def decode_shared_key(shared_key: str) -> bytes:
    """Decode a base64 shared key into raw HMAC key bytes.

    Raises:
        ConfigurationError: If the key is empty or not valid base64.
    """

    normalized = shared_key.strip() if isinstance(shared_key, str) else ""
    if not normalized:
        raise ConfigurationError(
            "Shared key is empty.",
            failure_kind="invalid_shared_key",
        )
    try:
        key_bytes = base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError(
            "Shared key is not valid base64.",
            failure_kind="invalid_shared_key",
        ) from exc
    if not key_bytes:
        raise ConfigurationError(
            "Shared key decodes to an empty value.",
            failure_kind="invalid_shared_key",
        )
    return key_bytes


def sign(credentials: Credentials, canonical_string: str) -> str:
    """Return the `Authorization` header value for a canonical string."""

    key_bytes = decode_shared_key(credentials.shared_key)
    digest = hmac.new(
        key_bytes,
        canonical_string.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).digest()
    encoded_digest = base64.b64encode(digest).decode("ascii")
    return f"SharedKey {credentials.workspace_id}:{encoded_digest}"

"""Authenticated HTTP client for the Log Analytics data collector API.

Responsibilities:
- Assemble one signed ingestion request per record.
- Send it with a single blocking POST and a caller-controlled timeout.
- Map transport failures and rejections to actionable client exceptions.

Key types:
- `LogShippingClient`: orchestrates normalization, serialization, and signing.
- `send_log_record`: functional form of `LogShippingClient.send`.
"""

from __future__ import annotations

from datetime import datetime
import re
from typing import Any, Mapping

import requests

from ..errors import ConfigurationError, NetworkError, RejectionError
from ..models.datatypes import Credentials, SignedRequest
from ..telemetry.logger import ShipLogger
from .payload import DEFAULT_TIMESTAMP_FIELD, serialize_record
from .signature import build_canonical_string, decode_shared_key, sign
from .timestamps import normalize_timestamp, to_wire_format, utc_now

API_VERSION = "2016-04-01"
DEFAULT_INGESTION_DOMAIN = "ods.opinsights.azure.com"
DEFAULT_TIMEOUT_SECONDS = 30.0

_METHOD = "POST"
_CONTENT_TYPE = "application/json"
_RESOURCE = "/api/logs"
_ACCEPTED_STATUS = 200
_LOG_TYPE_PATTERN = re.compile(r"[A-Za-z0-9_]{1,100}")
# One DNS label; workspace ids (GUIDs) and every domain label must match it.
_HOST_LABEL_PATTERN = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?")


def _is_host_name(value: str) -> bool:
    """Return whether `value` is a dotted host name of at least two labels."""

    labels = value.split(".")
    return len(labels) >= 2 and all(_HOST_LABEL_PATTERN.fullmatch(label) for label in labels)


class LogShippingClient:
    """Ship single log records to one workspace using shared-key authentication."""

    _MAX_RESPONSE_MESSAGE_CHARS = 180

    def __init__(
        self,
        credentials: Credentials,
        *,
        ingestion_domain: str = DEFAULT_INGESTION_DOMAIN,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        time_generated_field: str = DEFAULT_TIMESTAMP_FIELD,
        session: requests.Session | None = None,
        run_logger: ShipLogger | None = None,
    ) -> None:
        """Initialize the client with immutable credentials and transport settings."""

        self.credentials = credentials
        self.ingestion_domain = ingestion_domain.strip().strip(".")
        self.timeout_seconds = timeout_seconds
        self.time_generated_field = time_generated_field
        self._session = session
        self._run_logger = run_logger

    @property
    def endpoint(self) -> str:
        """Return the ingestion URI for the configured workspace."""

        return (
            f"https://{self.credentials.workspace_id}.{self.ingestion_domain}"
            f"{_RESOURCE}?api-version={API_VERSION}"
        )

    def validate(self, log_type: str) -> None:
        """Validate credentials and log type before any request is built.

        Raises:
            ConfigurationError: If the workspace id, shared key, domain, or
                log type is missing or malformed.
        """

        workspace_id = self.credentials.workspace_id
        if not isinstance(workspace_id, str) or not workspace_id.strip():
            raise ConfigurationError(
                "Workspace id is empty.",
                failure_kind="invalid_workspace_id",
            )
        if not _HOST_LABEL_PATTERN.fullmatch(workspace_id):
            raise ConfigurationError(
                f"Invalid workspace id `{workspace_id}`; expected a workspace GUID "
                "(letters, digits, and inner hyphens).",
                failure_kind="invalid_workspace_id",
            )
        decode_shared_key(self.credentials.shared_key)
        if not self.ingestion_domain:
            raise ConfigurationError(
                "Ingestion domain is empty.",
                failure_kind="invalid_ingestion_domain",
            )
        if not _is_host_name(self.ingestion_domain):
            raise ConfigurationError(
                f"Invalid ingestion domain `{self.ingestion_domain}`; expected a host name "
                "such as `ods.opinsights.azure.com`.",
                failure_kind="invalid_ingestion_domain",
            )
        if not isinstance(log_type, str) or not _LOG_TYPE_PATTERN.fullmatch(log_type):
            raise ConfigurationError(
                f"Invalid log type `{log_type}`; use 1-100 letters, digits, or underscores.",
                failure_kind="invalid_log_type",
            )

    def build_request(
        self,
        log_type: str,
        record: Mapping[str, Any],
        now: datetime,
    ) -> SignedRequest:
        """Build the signed request for one record at timestamp `now`."""

        self.validate(log_type)

        timestamp = normalize_timestamp(now)
        rfc1123_date = to_wire_format(timestamp)
        body = serialize_record(
            record,
            timestamp,
            timestamp_field=self.time_generated_field,
        )
        canonical = build_canonical_string(
            _METHOD,
            len(body),
            _CONTENT_TYPE,
            rfc1123_date,
            _RESOURCE,
        )
        headers = {
            "Authorization": sign(self.credentials, canonical),
            "Log-Type": log_type,
            "x-ms-date": rfc1123_date,
            "time-generated-field": self.time_generated_field,
            "Content-Type": _CONTENT_TYPE,
        }
        return SignedRequest(uri=self.endpoint, headers=headers, body=body)

    def send(
        self,
        log_type: str,
        record: Mapping[str, Any],
        now: datetime | None = None,
    ) -> int:
        """Ship one record and return the accepted HTTP status code.

        Raises:
            ConfigurationError: Credentials or log type are invalid; nothing is sent.
            SerializationError: The record holds a value JSON cannot represent.
            NetworkError: The request could not be completed or timed out.
            RejectionError: The service answered with a non-200 status.
        """

        signed = self.build_request(log_type, record, now if now is not None else utc_now())
        if self._run_logger is not None:
            self._run_logger.log_request_start(log_type, signed.content_length)

        try:
            response = self._post(signed)
        except (ConfigurationError, NetworkError) as exc:
            if self._run_logger is not None:
                self._run_logger.log_request_failure(log_type, type(exc).__name__)
            raise

        status_code = int(response.status_code)
        if status_code != _ACCEPTED_STATUS:
            if self._run_logger is not None:
                self._run_logger.log_request_failure(
                    log_type, RejectionError.__name__, status=status_code
                )
            raise self._rejection_error(response)

        if self._run_logger is not None:
            self._run_logger.log_request_complete(log_type, status_code)
        return status_code

    def _post(self, signed: SignedRequest) -> requests.Response:
        """Send the prepared POST once and map transport failures."""

        try:
            prepared = requests.Request(
                _METHOD,
                signed.uri,
                headers=dict(signed.headers),
                data=signed.body,
            ).prepare()
        except requests.exceptions.InvalidURL as exc:
            raise ConfigurationError(
                f"Ingestion endpoint is not a valid URL: {self._short_message(str(exc))}",
                failure_kind="invalid_endpoint",
            ) from exc
        try:
            if self._session is not None:
                return self._session.send(prepared, timeout=self.timeout_seconds)
            with requests.Session() as session:
                return session.send(prepared, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = f"Ingestion request timed out after {self.timeout_seconds:g}s."
            else:
                detail = (
                    "Ingestion request transport error: "
                    f"{self._short_message(self._redact_sensitive_tokens(str(exc)))}"
                )
            raise NetworkError(detail, failure_kind=failure_kind) from exc

    @staticmethod
    def _classify_transport_failure(reason: requests.RequestException) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, requests.Timeout):
            return "timeout"
        return "transport"

    @staticmethod
    def _decode_response_body(response: requests.Response) -> str:
        """Decode a response body into a best-effort UTF-8 string."""

        content = getattr(response, "content", b"") or b""
        return bytes(content).decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact shared-key signatures from service or transport messages."""

        return re.sub(
            r"(?i)sharedkey\s+[^:\s]+:[A-Za-z0-9+/=]+",
            "SharedKey [redacted-signature]",
            text,
        )

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_RESPONSE_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_RESPONSE_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _rejection_error(cls, response: requests.Response) -> RejectionError:
        """Convert a non-200 response into a rejection error with diagnostics."""

        status_code = int(response.status_code)
        body = cls._redact_sensitive_tokens(cls._decode_response_body(response))
        message = cls._short_message(body)
        if status_code == 403:
            headline = "Ingestion service rejected the request signature"
        elif status_code in {400, 404}:
            headline = "Ingestion service rejected the request"
        elif status_code == 429 or status_code >= 500:
            headline = "Ingestion service is unavailable"
        else:
            headline = "Ingestion service returned an unexpected status"

        if message:
            detail = f"{headline} (HTTP {status_code}): {message}"
        else:
            detail = f"{headline} (HTTP {status_code})."
        return RejectionError(detail, status_code=status_code, response_body=body)


def send_log_record(
    credentials: Credentials,
    log_type: str,
    record: Mapping[str, Any],
    now: datetime | None = None,
    **client_options: Any,
) -> int:
    """Ship one record with a short-lived client and return the status code."""

    client = LogShippingClient(credentials, **client_options)
    return client.send(log_type, record, now)

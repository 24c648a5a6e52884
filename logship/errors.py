"""Domain exceptions for log shipping and CLI diagnostics.

Key types:
- `LogShipError`: base class carrying a deterministic `failure_kind`.
- `ConfigurationError`, `SerializationError`, `NetworkError`, `RejectionError`:
  the client failure taxonomy.
- `CredentialStoreError`: secure key storage failures.
- `ShipStageError`: stage-scoped command error rendered by the CLI.
"""

from __future__ import annotations


class LogShipError(RuntimeError):
    """Raised when a log shipping operation fails."""

    def __init__(self, message: str, *, failure_kind: str = "unknown") -> None:
        """Initialize a shipping error with diagnostic classification."""

        super().__init__(message)
        self.failure_kind = failure_kind


class ConfigurationError(LogShipError, ValueError):
    """Raised for missing or malformed credentials and settings."""

    def __init__(self, message: str, *, failure_kind: str = "configuration") -> None:
        super().__init__(message, failure_kind=failure_kind)


class SerializationError(LogShipError, ValueError):
    """Raised when a log record holds a value JSON cannot represent."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message, failure_kind="serialization")
        self.key = key


class NetworkError(LogShipError):
    """Raised when the ingestion request could not be completed."""


class RejectionError(LogShipError):
    """Raised when the ingestion service answers with a non-200 status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        response_body: str = "",
    ) -> None:
        """Initialize rejection metadata for caller-side diagnosis."""

        super().__init__(message, failure_kind="rejected")
        self.status_code = status_code
        self.response_body = response_body


class CredentialStoreError(LogShipError):
    """Raised when the secure credential store cannot read or write a key."""


class ShipStageError(RuntimeError):
    """Raised when a specific command stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped command error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint

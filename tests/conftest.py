"""Shared pytest fixtures for the full logship test suite."""

from __future__ import annotations

import pytest
import requests

from logship.models.datatypes import Credentials

GOLDEN_WORKSPACE_ID = "ws-0001"
# base64 of b"logship-test-shared-key-material"
GOLDEN_SHARED_KEY = "bG9nc2hpcC10ZXN0LXNoYXJlZC1rZXktbWF0ZXJpYWw="


class FakeResponse:
    """Minimal requests response double exposing status and raw content."""

    def __init__(self, status_code: int = 200, content: bytes = b"") -> None:
        """Initialize response with HTTP status and raw payload bytes."""

        self.status_code = status_code
        self.content = content


class FakeSession:
    """Transport double that records prepared requests instead of sending them."""

    def __init__(self) -> None:
        """Initialize with an accepting response and no recorded requests."""

        self.status_code = 200
        self.response_body = b""
        self.error: Exception | None = None
        self.sent: list[requests.PreparedRequest] = []
        self.timeouts: list[object] = []

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, *_: object) -> None:
        return None

    def send(self, prepared: requests.PreparedRequest, **kwargs: object) -> FakeResponse:
        """Record the request and answer with the configured status or error."""

        self.sent.append(prepared)
        self.timeouts.append(kwargs.get("timeout"))
        if self.error is not None:
            raise self.error
        return FakeResponse(status_code=self.status_code, content=self.response_body)


class InMemoryCredentialStore:
    """Per-workspace key store used in place of the OS keyring."""

    def __init__(self) -> None:
        """Initialize an empty store and its write log."""

        self._keys: dict[str, str] = {}
        self.stored_values: list[tuple[str, str]] = []

    def is_available(self) -> bool:
        return True

    def get_shared_key(self, workspace_id: str) -> str | None:
        return self._keys.get(workspace_id)

    def set_shared_key(self, workspace_id: str, shared_key: str) -> None:
        self._keys[workspace_id] = shared_key
        self.stored_values.append((workspace_id, shared_key))

    def clear_shared_key(self, workspace_id: str) -> bool:
        return self._keys.pop(workspace_id, None) is not None

    def stored_workspaces(self) -> list[str]:
        return sorted(self._keys)


@pytest.fixture(autouse=True)
def _isolate_logship_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer `LOGSHIP_*` variables out of every test."""

    for key in (
        "LOGSHIP_WORKSPACE_ID",
        "LOGSHIP_SHARED_KEY",
        "LOGSHIP_LOG_TYPE",
        "LOGSHIP_INGESTION_DOMAIN",
        "LOGSHIP_TIMEOUT_SECONDS",
        "LOGSHIP_TIME_GENERATED_FIELD",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def golden_credentials() -> Credentials:
    """Provide credentials whose signatures are pinned by golden vectors."""

    return Credentials(workspace_id=GOLDEN_WORKSPACE_ID, shared_key=GOLDEN_SHARED_KEY)


@pytest.fixture
def fake_session() -> FakeSession:
    """Provide a recording transport that accepts every request."""

    return FakeSession()


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    """Provide an empty in-memory credential store."""

    return InMemoryCredentialStore()

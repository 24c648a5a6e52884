"""Integration-test fixtures for deterministic transport and credential behavior."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _mock_credential_store(monkeypatch: pytest.MonkeyPatch, credential_store) -> None:  # type: ignore[no-untyped-def]
    """Replace the OS keyring with an in-memory store for every CLI test."""

    monkeypatch.setattr("logship.cli.create_credential_store", lambda: credential_store)


@pytest.fixture
def cli_transport(monkeypatch: pytest.MonkeyPatch, fake_session):  # type: ignore[no-untyped-def]
    """Route the client's short-lived sessions to the recording fake transport."""

    monkeypatch.setattr("logship.ingest.client.requests.Session", lambda: fake_session)
    return fake_session

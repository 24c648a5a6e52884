"""CLI error-handling tests for concise stage diagnostics."""

from __future__ import annotations

from pathlib import Path

import requests
from typer.testing import CliRunner

from logship.cli import app

_SHARED_KEY = "bG9nc2hpcC10ZXN0LXNoYXJlZC1rZXktbWF0ZXJpYWw="
_CONNECTION_ARGS = [
    "--log-type",
    "CiraltosSpend",
    "--workspace-id",
    "ws-0001",
    "--no-store-shared-key",
]


def test_send_reports_rejection_with_signature_hint(cli_transport) -> None:  # type: ignore[no-untyped-def]
    """A 403 answer should fail at the ingest stage with a clock/key hint."""

    cli_transport.status_code = 403
    cli_transport.response_body = b'{"Error":"InvalidAuthorization"}'
    runner = CliRunner()

    result = runner.invoke(
        app, ["send", "--field", "A=b", "--shared-key", _SHARED_KEY, *_CONNECTION_ARGS]
    )

    assert result.exit_code == 1
    assert "send failed at stage `ingest`" in result.output
    assert "HTTP 403" in result.output
    assert "Hint: Verify the shared key and that the local clock is accurate." in result.output


def test_send_reports_invalid_shared_key_without_network_call(cli_transport) -> None:  # type: ignore[no-untyped-def]
    """A non-base64 key should fail before any request is made."""

    runner = CliRunner()

    result = runner.invoke(
        app, ["send", "--field", "A=b", "--shared-key", "not*base64", *_CONNECTION_ARGS]
    )

    assert result.exit_code == 1
    assert "send failed at stage `credentials`: Shared key is not valid base64." in result.output
    assert cli_transport.sent == []


def test_send_reports_transport_failure(cli_transport) -> None:  # type: ignore[no-untyped-def]
    """Timeouts should fail at the transport stage."""

    cli_transport.error = requests.Timeout("read timed out")
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["send", "--field", "A=b", "--shared-key", _SHARED_KEY, "--timeout", "3", *_CONNECTION_ARGS],
    )

    assert result.exit_code == 1
    assert "send failed at stage `transport`: Ingestion request timed out after 3s." in result.output


def test_send_reports_missing_workspace_id(cli_transport) -> None:  # type: ignore[no-untyped-def]
    """Missing credentials should fail at the config stage with setup hints."""

    runner = CliRunner()

    result = runner.invoke(
        app, ["send", "--field", "A=b", "--log-type", "Spend", "--shared-key", _SHARED_KEY]
    )

    assert result.exit_code == 1
    assert "send failed at stage `config`" in result.output
    assert "`workspace_id` could not be resolved" in result.output
    assert cli_transport.sent == []


def test_send_reports_missing_config_file() -> None:
    """A missing `--config` path should fail at the config stage."""

    runner = CliRunner()

    result = runner.invoke(app, ["send", "--config", "missing-logship.yaml", "--field", "A=b"])

    assert result.exit_code == 1
    assert "Config file not found: `missing-logship.yaml`." in result.output


def test_send_reports_record_errors(tmp_path: Path, cli_transport) -> None:  # type: ignore[no-untyped-def]
    """Malformed record inputs should fail at the record or serialize stage."""

    runner = CliRunner()
    base_args = ["send", "--shared-key", _SHARED_KEY, *_CONNECTION_ARGS]

    empty = runner.invoke(app, base_args)
    assert empty.exit_code == 1
    assert "send failed at stage `record`: The record is empty." in empty.output

    bad_number = runner.invoke(app, [*base_args, "--number", "Spend=lots"])
    assert bad_number.exit_code == 1
    assert "`Spend` must be numeric" in bad_number.output

    bad_timestamp = runner.invoke(app, [*base_args, "--field", "A=b", "--timestamp", "soon"])
    assert bad_timestamp.exit_code == 1
    assert "Invalid ISO-8601 timestamp `soon`." in bad_timestamp.output

    nested_path = tmp_path / "nested.json"
    nested_path.write_text('{"Tags": ["a"]}', encoding="utf-8")
    nested = runner.invoke(app, [*base_args, "--record", str(nested_path)])
    assert nested.exit_code == 1
    assert "send failed at stage `serialize`" in nested.output

    assert cli_transport.sent == []

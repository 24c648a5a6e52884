"""Integration tests for the `send` command."""

from __future__ import annotations

import json
from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from logship.cli import app

_SHARED_KEY = "bG9nc2hpcC10ZXN0LXNoYXJlZC1rZXktbWF0ZXJpYWw="
_EXPECTED_BODY = (
    b'{"Budget":500,"Day":"05-01-2024","Period":"202405","Spend":123,'
    b'"DateTime":"2024-05-01T00:00:00Z"}'
)


def _write_budget_record(tmp_path: Path) -> Path:
    """Write the budget record fixture as a JSON object file."""

    record_path = tmp_path / "record.json"
    record_path.write_text(
        json.dumps({"Budget": 500, "Day": "05-01-2024", "Period": "202405", "Spend": 123}),
        encoding="utf-8",
    )
    return record_path


def test_send_command_ships_record_file_with_golden_signature(
    tmp_path: Path, cli_transport  # type: ignore[no-untyped-def]
) -> None:
    """A JSON record file should be shipped as one signed POST."""

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "send",
            "--record",
            str(_write_budget_record(tmp_path)),
            "--log-type",
            "CiraltosSpend",
            "--timestamp",
            "2024-05-01T00:00:00Z",
            "--workspace-id",
            "ws-0001",
            "--shared-key",
            _SHARED_KEY,
            "--no-store-shared-key",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Status: 200" in result.output
    assert "Fields sent: 5" in result.output
    assert "[ship] level=INFO event=complete log_type=CiraltosSpend status=200" in result.output
    assert _SHARED_KEY not in result.output
    assert len(cli_transport.sent) == 1
    prepared = cli_transport.sent[0]
    assert prepared.body == _EXPECTED_BODY
    assert prepared.headers["Content-Length"] == str(len(_EXPECTED_BODY))
    assert prepared.headers["Authorization"] == (
        "SharedKey ws-0001:y+rsOi7njG3VsqLWJ/mJaZwKqF1fiR1/8zUoCMknh8Q="
    )


def test_send_command_builds_record_from_field_options_and_env(
    monkeypatch: MonkeyPatch, cli_transport  # type: ignore[no-untyped-def]
) -> None:
    """String and numeric options should build the record with env credentials."""

    monkeypatch.setenv("LOGSHIP_WORKSPACE_ID", "ws-env")
    monkeypatch.setenv("LOGSHIP_SHARED_KEY", _SHARED_KEY)
    monkeypatch.setenv("LOGSHIP_LOG_TYPE", "EnvSpend")
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "send",
            "--field",
            "Period=202405",
            "--number",
            "Spend=123.5",
            "--timestamp",
            "2024-05-01T00:00:00Z",
        ],
    )

    assert result.exit_code == 0, result.output
    prepared = cli_transport.sent[0]
    assert json.loads(prepared.body) == {
        "Period": "202405",
        "Spend": 123.5,
        "DateTime": "2024-05-01T00:00:00Z",
    }
    assert prepared.headers["Log-Type"] == "EnvSpend"
    assert prepared.url.startswith("https://ws-env.ods.opinsights.azure.com/api/logs")


def test_send_command_reads_yaml_config(tmp_path: Path, cli_transport) -> None:  # type: ignore[no-untyped-def]
    """YAML config should supply connection defaults that CLI options can override."""

    config_path = tmp_path / "logship.yml"
    config_path.write_text(
        f"""
workspace_id: ws-yaml
shared_key: "{_SHARED_KEY}"
log_type: YamlSpend
ingestion_domain: ods.opinsights.azure.us
timeout_seconds: 4
""".strip(),
        encoding="utf-8",
    )
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["send", "--config", str(config_path), "--field", "A=b", "--log-type", "CliSpend"],
    )

    assert result.exit_code == 0, result.output
    prepared = cli_transport.sent[0]
    assert prepared.url == "https://ws-yaml.ods.opinsights.azure.us/api/logs?api-version=2016-04-01"
    assert prepared.headers["Log-Type"] == "CliSpend"
    assert cli_transport.timeouts == [4.0]


def test_send_command_stores_cli_shared_key(
    tmp_path: Path, cli_transport, credential_store  # type: ignore[no-untyped-def]
) -> None:
    """A shared key passed on the command line should be persisted for its workspace."""

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "send",
            "--field",
            "A=b",
            "--log-type",
            "Spend",
            "--workspace-id",
            "ws-0001",
            "--shared-key",
            _SHARED_KEY,
        ],
    )

    assert result.exit_code == 0, result.output
    assert credential_store.stored_values == [("ws-0001", _SHARED_KEY)]
    assert (
        "Stored shared key for workspace `ws-0001` in secure credential storage."
        in result.output
    )


def test_send_command_uses_key_stored_for_env_workspace(
    monkeypatch: MonkeyPatch, cli_transport, credential_store  # type: ignore[no-untyped-def]
) -> None:
    """The stored key of the env-selected workspace should sign the request."""

    monkeypatch.setenv("LOGSHIP_WORKSPACE_ID", "ws-0001")
    credential_store.set_shared_key("ws-0001", _SHARED_KEY)
    credential_store.set_shared_key("ws-other", "b3RoZXIta2V5")
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "send",
            "--number",
            "Budget=500",
            "--log-type",
            "CiraltosSpend",
            "--timestamp",
            "2024-05-01T00:00:00Z",
        ],
    )

    assert result.exit_code == 0, result.output
    prepared = cli_transport.sent[0]
    assert prepared.headers["Authorization"].startswith("SharedKey ws-0001:")
    assert _SHARED_KEY not in result.output


def test_send_command_reports_body_field_count_when_record_has_timestamp_key(
    cli_transport,  # type: ignore[no-untyped-def]
) -> None:
    """A record key named like the timestamp field is overwritten, not added."""

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "send",
            "--field",
            "DateTime=stale",
            "--field",
            "A=b",
            "--log-type",
            "Spend",
            "--workspace-id",
            "ws-0001",
            "--shared-key",
            _SHARED_KEY,
            "--no-store-shared-key",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Fields sent: 2" in result.output
    assert len(json.loads(cli_transport.sent[0].body)) == 2

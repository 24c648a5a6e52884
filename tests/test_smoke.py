"""Basic smoke tests for project wiring.

These tests verify only import-level behavior and command registration.
"""

from typer.testing import CliRunner

import logship
from logship.cli import app


def test_package_exports_public_entrypoints() -> None:
    """Package root should expose the client, credentials, and send helper."""

    assert logship.__version__ == "0.1.0"
    assert callable(logship.send_log_record)
    assert logship.LogShippingClient is not None
    assert logship.Credentials is not None


def test_cli_help_lists_commands() -> None:
    """Top-level help should list every registered command."""

    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("send", "budget", "credentials"):
        assert command in result.output

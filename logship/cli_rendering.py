"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics
and send summaries.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .config import ShipperRuntimeConfig
from .errors import ShipStageError


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, ShipStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_send_summary(runtime: ShipperRuntimeConfig, status_code: int, field_count: int) -> None:
    """Print the non-secret outcome of one accepted send."""

    metadata = runtime.as_summary_metadata()
    typer.echo(f"Workspace: {metadata['workspace_id']}")
    typer.echo(f"Log type: {metadata['log_type']}")
    typer.echo(f"Fields sent: {field_count}")
    typer.echo(f"Status: {status_code}")

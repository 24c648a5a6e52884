"""CLI runtime resolution helpers.

This module isolates shared-key prompting, runtime source assembly,
and per-workspace shared-key persistence from the command wiring layer.
"""

from __future__ import annotations

from typing import Callable, Protocol

import typer

from .credentials import create_credential_store
from .errors import CredentialStoreError, ShipStageError
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Protocol for the per-workspace key operations used during resolution."""

    def get_shared_key(self, workspace_id: str) -> str | None:
        """Return the stored shared key for a workspace, if any."""

    def set_shared_key(self, workspace_id: str, shared_key: str) -> None:
        """Persist the shared key for a workspace."""


def _set_runtime_cli_value(
    runtime_cli_values: dict[str, str],
    key: str,
    value: object,
) -> None:
    """Set a normalized runtime CLI value when user input is present."""

    normalized = normalize_optional_string(value)
    if normalized is not None:
        runtime_cli_values[key] = normalized


def resolve_runtime_sources(
    workspace_id: str | None,
    shared_key: str | None,
    log_type: str | None,
    ingestion_domain: str | None,
    timeout_seconds: float | None,
    prompt_shared_key: bool,
    store_shared_key: bool,
    fallback_workspace_id: str | None = None,
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
) -> tuple[dict[str, str], dict[str, str]]:
    """Resolve CLI and secure runtime source mappings for shipping configuration.

    Stored keys are addressed by workspace: the `--workspace-id` value wins,
    otherwise `fallback_workspace_id` (env or config file) is used. Without
    any workspace id the secure store is neither read nor written.
    """

    runtime_cli_values: dict[str, str] = {}
    _set_runtime_cli_value(runtime_cli_values, "workspace_id", workspace_id)
    _set_runtime_cli_value(runtime_cli_values, "shared_key", shared_key)
    _set_runtime_cli_value(runtime_cli_values, "log_type", log_type)
    _set_runtime_cli_value(runtime_cli_values, "ingestion_domain", ingestion_domain)
    if timeout_seconds is not None:
        runtime_cli_values["timeout_seconds"] = f"{timeout_seconds:g}"

    shared_key_entered_in_run = "shared_key" in runtime_cli_values
    if prompt_shared_key and not shared_key_entered_in_run:
        prompted_shared_key = normalize_optional_string(
            typer.prompt(
                "Workspace shared key (hidden; leave blank to skip)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_shared_key is not None:
            runtime_cli_values["shared_key"] = prompted_shared_key
            shared_key_entered_in_run = True

    runtime_secure_values: dict[str, str] = {}
    target_workspace = runtime_cli_values.get("workspace_id") or normalize_optional_string(
        fallback_workspace_id
    )
    if target_workspace is None:
        return runtime_cli_values, runtime_secure_values

    credential_store = credential_store_factory()
    if not shared_key_entered_in_run:
        try:
            stored_shared_key = credential_store.get_shared_key(target_workspace)
        except CredentialStoreError as exc:
            raise ShipStageError(
                stage="credentials",
                detail=str(exc),
                hint="Pass `--shared-key`/`--prompt-shared-key`, or repair the keyring backend.",
            ) from exc
        if stored_shared_key is not None:
            runtime_secure_values["shared_key"] = stored_shared_key
        return runtime_cli_values, runtime_secure_values

    if store_shared_key:
        try:
            credential_store.set_shared_key(target_workspace, runtime_cli_values["shared_key"])
        except CredentialStoreError as exc:
            raise ShipStageError(
                stage="credentials",
                detail=f"Failed to store shared key securely: {exc}",
                hint=(
                    "Install and configure a keyring backend, or rerun with "
                    "`--no-store-shared-key` for one-off usage."
                ),
            ) from exc
        typer.echo(
            f"Stored shared key for workspace `{target_workspace}` in secure credential storage."
        )

    return runtime_cli_values, runtime_secure_values

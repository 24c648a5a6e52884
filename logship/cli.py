"""Command-line interface for logship.

Responsibilities:
- Expose user-facing commands for shipping records and managing credentials.
- Convert CLI arguments into `ShipperConfig` and run one signed send.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from datetime import date, datetime
import json
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from .budget import BudgetSnapshot, format_day
from .cli_rendering import echo_send_summary, exit_with_command_error
from .cli_runtime import resolve_runtime_sources
from .config import ConfigLoader, RuntimeConfigSources, ShipperConfig, ShipperRuntimeConfig
from .credentials import create_credential_store
from .errors import (
    ConfigurationError,
    CredentialStoreError,
    NetworkError,
    RejectionError,
    SerializationError,
    ShipStageError,
)
from .ingest.timestamps import parse_timestamp, utc_now
from .parsing import normalize_optional_string, parse_number_token, split_assignment
from .telemetry.logger import ShipLogger

app = typer.Typer(
    name="logship",
    no_args_is_help=True,
    help="Ship signed telemetry records to a Log Analytics workspace.",
)


def _load_yaml_config(config_path: Path | None) -> ShipperConfig:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return ShipperConfig()

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise ShipStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise ShipStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise ShipStageError(
            stage="config",
            detail=f"Failed to read config file `{config_path}`: {exc}",
            hint="Verify file permissions.",
        ) from exc


def _resolve_runtime(
    config_file: Path | None,
    workspace_id: str | None,
    shared_key: str | None,
    log_type: str | None,
    ingestion_domain: str | None,
    timeout_seconds: float | None,
    prompt_shared_key: bool,
    store_shared_key: bool,
) -> ShipperRuntimeConfig:
    """Resolve effective runtime settings from CLI, keyring, env, and YAML values."""

    base_config = _load_yaml_config(config_file)
    runtime_cli_values, runtime_secure_values = resolve_runtime_sources(
        workspace_id=workspace_id,
        shared_key=shared_key,
        log_type=log_type,
        ingestion_domain=ingestion_domain,
        timeout_seconds=timeout_seconds,
        prompt_shared_key=prompt_shared_key,
        store_shared_key=store_shared_key,
        fallback_workspace_id=base_config.fallback_workspace_id(os.environ),
        credential_store_factory=create_credential_store,
    )
    sources = RuntimeConfigSources(
        cli=runtime_cli_values,
        secure=runtime_secure_values,
        env=os.environ,
    )
    try:
        return base_config.resolved_runtime(sources)
    except ConfigurationError as exc:
        raise ShipStageError(
            stage="config",
            detail=str(exc),
            hint=(
                "Pass `--workspace-id`, `--log-type`, and `--prompt-shared-key`, "
                "or set `LOGSHIP_WORKSPACE_ID`, `LOGSHIP_LOG_TYPE`, and `LOGSHIP_SHARED_KEY`."
            ),
        ) from exc


def _load_record_file(record_file: Path) -> dict[str, Any]:
    """Load a JSON object record from disk."""

    try:
        payload = json.loads(record_file.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ShipStageError(
            stage="record",
            detail=f"Record file not found: `{record_file}`.",
        ) from exc
    except json.JSONDecodeError as exc:
        raise ShipStageError(
            stage="record",
            detail=f"Record file `{record_file}` is not valid JSON: {exc.msg}.",
        ) from exc
    if not isinstance(payload, dict):
        raise ShipStageError(
            stage="record",
            detail=f"Record file `{record_file}` must contain one JSON object.",
        )
    return payload


def _build_record(
    fields: list[str] | None,
    numbers: list[str] | None,
    record_file: Path | None,
) -> dict[str, Any]:
    """Merge file, string, and numeric inputs into one ordered record."""

    record: dict[str, Any] = {}
    if record_file is not None:
        record.update(_load_record_file(record_file))
    try:
        for token in fields or []:
            key, value = split_assignment(token, "--field")
            record[key] = value
        for token in numbers or []:
            key, value = split_assignment(token, "--number")
            record[key] = parse_number_token(value, key)
    except ValueError as exc:
        raise ShipStageError(stage="record", detail=str(exc)) from exc
    if not record:
        raise ShipStageError(
            stage="record",
            detail="The record is empty.",
            hint="Pass `--field KEY=VALUE`, `--number KEY=N`, or `--record <file.json>`.",
        )
    return record


def _resolve_timestamp(timestamp: str | None) -> datetime:
    """Parse an optional `--timestamp` value, defaulting to the current UTC time."""

    if normalize_optional_string(timestamp) is None:
        return utc_now()
    try:
        return parse_timestamp(str(timestamp))
    except ValueError as exc:
        raise ShipStageError(
            stage="record",
            detail=str(exc),
            hint="Use ISO-8601, for example `2024-05-01T00:00:00Z`.",
        ) from exc


def _ship_record(
    runtime: ShipperRuntimeConfig,
    record: dict[str, Any],
    timestamp: datetime,
) -> int:
    """Send one record and map client failures to stage-aware errors."""

    client = runtime.create_client(run_logger=ShipLogger())
    try:
        return client.send(runtime.log_type, record, timestamp)
    except ConfigurationError as exc:
        raise ShipStageError(
            stage="credentials",
            detail=str(exc),
            hint="Verify the workspace id, the base64 shared key, and the log type name.",
        ) from exc
    except SerializationError as exc:
        raise ShipStageError(stage="serialize", detail=str(exc)) from exc
    except NetworkError as exc:
        raise ShipStageError(
            stage="transport",
            detail=str(exc),
            hint="Check connectivity to the ingestion domain or raise `--timeout`.",
        ) from exc
    except RejectionError as exc:
        hint = None
        if exc.status_code == 403:
            hint = "Verify the shared key and that the local clock is accurate."
        raise ShipStageError(stage="ingest", detail=str(exc), hint=hint) from exc


def _shipped_field_count(runtime: ShipperRuntimeConfig, record: dict[str, Any]) -> int:
    """Count body fields; the timestamp field replaces a same-named record key."""

    return len({*record, runtime.time_generated_field})


@app.command("send")
def send_command(
    log_type: Annotated[
        str | None,
        typer.Option("--log-type", help="Custom log type name (table name without `_CL`)."),
    ] = None,
    fields: Annotated[
        list[str] | None,
        typer.Option("--field", help="String field as `KEY=VALUE`; repeatable."),
    ] = None,
    numbers: Annotated[
        list[str] | None,
        typer.Option("--number", help="Numeric field as `KEY=N`; repeatable."),
    ] = None,
    record_file: Annotated[
        Path | None,
        typer.Option("--record", help="Path to a JSON object used as the base record."),
    ] = None,
    timestamp: Annotated[
        str | None,
        typer.Option("--timestamp", help="Record timestamp (ISO-8601); defaults to now."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with connection defaults."),
    ] = None,
    workspace_id: Annotated[
        str | None,
        typer.Option("--workspace-id", help="Log Analytics workspace id."),
    ] = None,
    shared_key: Annotated[
        str | None,
        typer.Option(
            "--shared-key",
            help="Workspace shared key. Prefer `--prompt-shared-key` to avoid shell history.",
        ),
    ] = None,
    prompt_shared_key: Annotated[
        bool,
        typer.Option(
            "--prompt-shared-key",
            help="Prompt for the shared key with hidden input (never echoed).",
        ),
    ] = False,
    store_shared_key: Annotated[
        bool,
        typer.Option(
            "--store-shared-key/--no-store-shared-key",
            help="Persist a CLI-entered shared key to secure credential storage.",
        ),
    ] = True,
    ingestion_domain: Annotated[
        str | None,
        typer.Option("--ingestion-domain", help="Data collector domain override."),
    ] = None,
    timeout_seconds: Annotated[
        float | None,
        typer.Option("--timeout", help="HTTP timeout in seconds."),
    ] = None,
) -> None:
    """Ship one record built from fields and/or a JSON file."""

    try:
        runtime = _resolve_runtime(
            config_file=config_file,
            workspace_id=workspace_id,
            shared_key=shared_key,
            log_type=log_type,
            ingestion_domain=ingestion_domain,
            timeout_seconds=timeout_seconds,
            prompt_shared_key=prompt_shared_key,
            store_shared_key=store_shared_key,
        )
        record = _build_record(fields, numbers, record_file)
        status_code = _ship_record(runtime, record, _resolve_timestamp(timestamp))
    except Exception as exc:
        exit_with_command_error("send", exc)

    echo_send_summary(runtime, status_code, field_count=_shipped_field_count(runtime, record))


@app.command("budget")
def budget_command(
    budget_amount: Annotated[
        str,
        typer.Option("--budget", help="Budget amount for the billing period."),
    ],
    spend: Annotated[
        str,
        typer.Option("--spend", help="Actual spend so far in the billing period."),
    ],
    day: Annotated[
        str | None,
        typer.Option("--day", help="Reporting day as `MM-dd-yyyy`; defaults to today."),
    ] = None,
    period: Annotated[
        str | None,
        typer.Option("--period", help="Billing period as `yyyyMM`; defaults to the day's month."),
    ] = None,
    log_type: Annotated[
        str | None,
        typer.Option("--log-type", help="Custom log type name (table name without `_CL`)."),
    ] = None,
    timestamp: Annotated[
        str | None,
        typer.Option("--timestamp", help="Record timestamp (ISO-8601); defaults to now."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with connection defaults."),
    ] = None,
    workspace_id: Annotated[
        str | None,
        typer.Option("--workspace-id", help="Log Analytics workspace id."),
    ] = None,
    shared_key: Annotated[
        str | None,
        typer.Option(
            "--shared-key",
            help="Workspace shared key. Prefer `--prompt-shared-key` to avoid shell history.",
        ),
    ] = None,
    prompt_shared_key: Annotated[
        bool,
        typer.Option(
            "--prompt-shared-key",
            help="Prompt for the shared key with hidden input (never echoed).",
        ),
    ] = False,
    store_shared_key: Annotated[
        bool,
        typer.Option(
            "--store-shared-key/--no-store-shared-key",
            help="Persist a CLI-entered shared key to secure credential storage.",
        ),
    ] = True,
    ingestion_domain: Annotated[
        str | None,
        typer.Option("--ingestion-domain", help="Data collector domain override."),
    ] = None,
    timeout_seconds: Annotated[
        float | None,
        typer.Option("--timeout", help="HTTP timeout in seconds."),
    ] = None,
) -> None:
    """Ship one budget snapshot record (`Budget`, `Day`, `Period`, `Spend`)."""

    try:
        snapshot = _build_budget_snapshot(budget_amount, spend, day, period)
        runtime = _resolve_runtime(
            config_file=config_file,
            workspace_id=workspace_id,
            shared_key=shared_key,
            log_type=log_type,
            ingestion_domain=ingestion_domain,
            timeout_seconds=timeout_seconds,
            prompt_shared_key=prompt_shared_key,
            store_shared_key=store_shared_key,
        )
        record = snapshot.as_log_record()
        status_code = _ship_record(runtime, record, _resolve_timestamp(timestamp))
    except Exception as exc:
        exit_with_command_error("budget", exc)

    typer.echo(f"Billing period: {snapshot.billing_period}")
    echo_send_summary(runtime, status_code, field_count=_shipped_field_count(runtime, record))


def _build_budget_snapshot(
    budget_amount: str,
    spend: str,
    day: str | None,
    period: str | None,
) -> BudgetSnapshot:
    """Validate budget options and build the snapshot record source."""

    try:
        parsed_budget = parse_number_token(budget_amount, "--budget")
        parsed_spend = parse_number_token(spend, "--spend")
        reporting_day = (
            datetime.strptime(day.strip(), "%m-%d-%Y").date()
            if normalize_optional_string(day) is not None
            else date.today()
        )
    except ValueError as exc:
        raise ShipStageError(
            stage="record",
            detail=str(exc),
            hint="Use numeric `--budget`/`--spend` and `--day` as `MM-dd-yyyy`.",
        ) from exc

    resolved_period = normalize_optional_string(period)
    if resolved_period is None:
        return BudgetSnapshot.for_day(parsed_budget, parsed_spend, reporting_day)
    if len(resolved_period) != 6 or not resolved_period.isdigit():
        raise ShipStageError(
            stage="record",
            detail=f"Billing period `{resolved_period}` must be `yyyyMM`.",
        )
    return BudgetSnapshot(
        budget_amount=parsed_budget,
        spend=parsed_spend,
        day=format_day(reporting_day),
        billing_period=resolved_period,
    )


@app.command("credentials")
def credentials_command(
    workspace_id: Annotated[
        str | None,
        typer.Option(
            "--workspace-id",
            help="Workspace whose stored key to manage; defaults to `LOGSHIP_WORKSPACE_ID`.",
        ),
    ] = None,
    set_shared_key: Annotated[
        bool,
        typer.Option(
            "--set-shared-key",
            help="Prompt for the workspace shared key with hidden input and store it securely.",
        ),
    ] = False,
    clear_shared_key: Annotated[
        bool,
        typer.Option(
            "--clear-shared-key",
            help="Clear the workspace shared key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage per-workspace shared keys in secure credential storage."""

    try:
        _run_credentials_action(workspace_id, set_shared_key, clear_shared_key)
    except Exception as exc:
        exit_with_command_error("credentials", exc)


def _run_credentials_action(
    workspace_id: str | None,
    set_shared_key: bool,
    clear_shared_key: bool,
) -> None:
    """Execute one `credentials` action and echo its outcome."""

    if set_shared_key and clear_shared_key:
        raise ShipStageError(
            stage="credentials",
            detail="`--set-shared-key` and `--clear-shared-key` cannot be used together.",
            hint="Run one credentials action per command invocation.",
        )

    target_workspace = normalize_optional_string(workspace_id) or normalize_optional_string(
        os.environ.get("LOGSHIP_WORKSPACE_ID")
    )
    if (set_shared_key or clear_shared_key) and target_workspace is None:
        raise ShipStageError(
            stage="credentials",
            detail="A workspace id is required to set or clear a stored shared key.",
            hint="Pass `--workspace-id` or set `LOGSHIP_WORKSPACE_ID`.",
        )

    credential_store = create_credential_store()
    try:
        if set_shared_key:
            prompted_shared_key = normalize_optional_string(
                typer.prompt(
                    "Workspace shared key (hidden input)",
                    default="",
                    hide_input=True,
                    show_default=False,
                )
            )
            if prompted_shared_key is None:
                raise ShipStageError(
                    stage="credentials",
                    detail="No shared key entered.",
                    hint="Provide a non-empty shared key when using `--set-shared-key`.",
                )
            credential_store.set_shared_key(target_workspace, prompted_shared_key)
            typer.echo(
                f"Shared key for workspace `{target_workspace}` stored in secure credential storage."
            )
            return

        if clear_shared_key:
            if credential_store.clear_shared_key(target_workspace):
                typer.echo(f"Stored shared key for workspace `{target_workspace}` cleared.")
            else:
                typer.echo(f"No stored shared key found for workspace `{target_workspace}`.")
            return

        availability = "available" if credential_store.is_available() else "unavailable"
        typer.echo(f"Secure credential storage: {availability}")
        if target_workspace is not None:
            status = (
                "present"
                if credential_store.get_shared_key(target_workspace) is not None
                else "not set"
            )
            typer.echo(f"Stored shared key for `{target_workspace}`: {status}")
            return
        stored = credential_store.stored_workspaces()
        typer.echo(f"Workspaces with stored keys: {', '.join(stored) if stored else 'none'}")
    except CredentialStoreError as exc:
        raise ShipStageError(
            stage="credentials",
            detail=str(exc),
            hint="Install and configure a keyring backend and retry.",
        ) from exc


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()

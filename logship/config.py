"""Configuration model and loaders for logship.

Responsibilities:
- Define shipping configuration as a typed dataclass.
- Provide deterministic precedence resolution for credentials and transport settings.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `ShipperConfig`: normalized settings for one or more send operations.
- `ShipperRuntimeConfig`: resolved credentials and transport values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `ShipperConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import requests
import yaml

from .errors import ConfigurationError
from .ingest.client import (
    DEFAULT_INGESTION_DOMAIN,
    DEFAULT_TIMEOUT_SECONDS,
    LogShippingClient,
)
from .ingest.payload import DEFAULT_TIMESTAMP_FIELD
from .models.datatypes import Credentials
from .parsing import normalize_optional_string, parse_positive_float
from .telemetry.logger import ShipLogger


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ShipperRuntimeConfig:
    """Resolved credentials and transport settings for one command run.

    Attributes:
        credentials: Workspace id and shared key used for signing.
        log_type: Custom log type name sent in the `Log-Type` header.
        ingestion_domain: Data collector domain appended to the workspace id.
        timeout_seconds: HTTP timeout for the single POST.
        time_generated_field: Body field name announced as the record timestamp.
    """

    credentials: Credentials
    log_type: str
    ingestion_domain: str = DEFAULT_INGESTION_DOMAIN
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    time_generated_field: str = DEFAULT_TIMESTAMP_FIELD

    def create_client(
        self,
        session: requests.Session | None = None,
        run_logger: ShipLogger | None = None,
    ) -> LogShippingClient:
        """Build a shipping client bound to these runtime settings."""

        return LogShippingClient(
            self.credentials,
            ingestion_domain=self.ingestion_domain,
            timeout_seconds=self.timeout_seconds,
            time_generated_field=self.time_generated_field,
            session=session,
            run_logger=run_logger,
        )

    def as_summary_metadata(self) -> dict[str, str]:
        """Return non-secret settings safe to print in command summaries."""

        return {
            "workspace_id": self.credentials.workspace_id,
            "log_type": self.log_type,
            "ingestion_domain": self.ingestion_domain,
            "timeout_seconds": f"{self.timeout_seconds:g}",
        }


@dataclass(slots=True)
class ShipperConfig:
    """Shipping configuration before runtime source resolution.

    Attributes:
        workspace_id: Optional workspace identifier.
        shared_key: Optional base64 workspace shared key (hidden from `repr`).
        log_type: Optional default custom log type.
        ingestion_domain: Data collector domain, defaulting to Azure public cloud.
        timeout_seconds: HTTP timeout in seconds.
        time_generated_field: Body field carrying the record timestamp.
        runtime_sources: Optional runtime source overrides injected by CLI.
        extra: Additional metadata for future extensions.
    """

    workspace_id: str | None = None
    shared_key: str | None = field(default=None, repr=False)
    log_type: str | None = None
    ingestion_domain: str = DEFAULT_INGESTION_DOMAIN
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    time_generated_field: str = DEFAULT_TIMESTAMP_FIELD
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate static configuration values before resolution."""

        self._require_non_empty(self.ingestion_domain, "ingestion_domain")
        self._require_non_empty(self.time_generated_field, "time_generated_field")
        if not self.timeout_seconds > 0.0:
            raise ConfigurationError("`timeout_seconds` must be a positive number.")

    def fallback_workspace_id(self, env: Mapping[str, str]) -> str | None:
        """Return the workspace id from `env` or this config, ignoring CLI values."""

        env_value = self._normalized_lookup(env, "LOGSHIP_WORKSPACE_ID")
        if env_value is not None:
            return env_value
        return normalize_optional_string(self.workspace_id)

    def resolved_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ShipperRuntimeConfig:
        """Resolve runtime settings with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field value.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources

        workspace_id = self._resolve_runtime_value(
            key="workspace_id",
            env_key="LOGSHIP_WORKSPACE_ID",
            default_value=self.workspace_id,
            sources=resolved_sources,
        )
        shared_key = self._resolve_runtime_value(
            key="shared_key",
            env_key="LOGSHIP_SHARED_KEY",
            default_value=self.shared_key,
            sources=resolved_sources,
        )
        log_type = self._resolve_runtime_value(
            key="log_type",
            env_key="LOGSHIP_LOG_TYPE",
            default_value=self.log_type,
            sources=resolved_sources,
        )
        ingestion_domain = self._resolve_runtime_value(
            key="ingestion_domain",
            env_key="LOGSHIP_INGESTION_DOMAIN",
            default_value=self.ingestion_domain,
            sources=resolved_sources,
        )
        timeout_text = self._resolve_runtime_value(
            key="timeout_seconds",
            env_key="LOGSHIP_TIMEOUT_SECONDS",
            default_value=str(self.timeout_seconds),
            sources=resolved_sources,
        )
        time_generated_field = self._resolve_runtime_value(
            key="time_generated_field",
            env_key="LOGSHIP_TIME_GENERATED_FIELD",
            default_value=self.time_generated_field,
            sources=resolved_sources,
        )

        try:
            timeout_seconds = parse_positive_float(timeout_text, "timeout_seconds")
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        return ShipperRuntimeConfig(
            credentials=Credentials(workspace_id=workspace_id, shared_key=shared_key),
            log_type=log_type,
            ingestion_domain=ingestion_domain,
            timeout_seconds=timeout_seconds,
            time_generated_field=time_generated_field,
        )

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a runtime value from sources in deterministic precedence order."""

        cli_value = self._normalized_lookup(sources.cli, key)
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, key)
        if secure_value is not None:
            return secure_value

        env_value = self._normalized_lookup(sources.env, env_key)
        if env_value is not None:
            return env_value

        normalized_default = normalize_optional_string(default_value)
        if normalized_default is None:
            raise ConfigurationError(
                f"`{key}` could not be resolved from CLI, secure storage, env "
                f"(`{env_key}`), or config file.",
                failure_kind=f"missing_{key}",
            )
        return normalized_default

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `ShipperConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "workspace_id",
            "shared_key",
            "log_type",
            "ingestion_domain",
            "timeout_seconds",
            "time_generated_field",
            "extra",
        }
    )
    _RUNTIME_ENV_KEYS = frozenset(
        {
            "LOGSHIP_WORKSPACE_ID",
            "LOGSHIP_SHARED_KEY",
            "LOGSHIP_LOG_TYPE",
            "LOGSHIP_INGESTION_DOMAIN",
            "LOGSHIP_TIMEOUT_SECONDS",
            "LOGSHIP_TIME_GENERATED_FIELD",
        }
    )

    @staticmethod
    def from_yaml(path: Path) -> ShipperConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        try:
            payload = yaml.safe_load(path_text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ConfigurationError(
                f"YAML config `{path}` must contain a top-level mapping/object."
            )
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> ShipperConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        timeout_text = normalize_optional_string(env_map.get("LOGSHIP_TIMEOUT_SECONDS"))
        try:
            timeout_seconds = (
                parse_positive_float(timeout_text, "LOGSHIP_TIMEOUT_SECONDS")
                if timeout_text is not None
                else DEFAULT_TIMEOUT_SECONDS
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }

        config = ShipperConfig(
            workspace_id=normalize_optional_string(env_map.get("LOGSHIP_WORKSPACE_ID")),
            shared_key=normalize_optional_string(env_map.get("LOGSHIP_SHARED_KEY")),
            log_type=normalize_optional_string(env_map.get("LOGSHIP_LOG_TYPE")),
            ingestion_domain=(
                normalize_optional_string(env_map.get("LOGSHIP_INGESTION_DOMAIN"))
                or DEFAULT_INGESTION_DOMAIN
            ),
            timeout_seconds=timeout_seconds,
            time_generated_field=(
                normalize_optional_string(env_map.get("LOGSHIP_TIME_GENERATED_FIELD"))
                or DEFAULT_TIMESTAMP_FIELD
            ),
            runtime_sources=RuntimeConfigSources(env=runtime_env),
        )
        config.validate()
        return config

    @staticmethod
    def _build_config_from_mapping(payload: Mapping[str, Any], source_label: str) -> ShipperConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown_keys = sorted(
            str(key) for key in payload.keys() if key not in ConfigLoader._SUPPORTED_YAML_KEYS
        )
        if unknown_keys:
            raise ConfigurationError(
                f"{source_label} has unsupported key(s): {', '.join(unknown_keys)}."
            )

        timeout_value = payload.get("timeout_seconds")
        try:
            timeout_seconds = (
                parse_positive_float(timeout_value, "timeout_seconds")
                if normalize_optional_string(timeout_value) is not None
                else DEFAULT_TIMEOUT_SECONDS
            )
        except ValueError as exc:
            raise ConfigurationError(f"{source_label}: {exc}") from exc

        config = ShipperConfig(
            workspace_id=ConfigLoader._optional_string(payload, "workspace_id", source_label),
            shared_key=ConfigLoader._optional_string(payload, "shared_key", source_label),
            log_type=ConfigLoader._optional_string(payload, "log_type", source_label),
            ingestion_domain=(
                ConfigLoader._optional_string(payload, "ingestion_domain", source_label)
                or DEFAULT_INGESTION_DOMAIN
            ),
            timeout_seconds=timeout_seconds,
            time_generated_field=(
                ConfigLoader._optional_string(payload, "time_generated_field", source_label)
                or DEFAULT_TIMESTAMP_FIELD
            ),
            extra=ConfigLoader._string_mapping(payload, "extra", source_label),
        )
        config.validate()
        return config

    @staticmethod
    def _optional_string(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> str | None:
        """Return a normalized optional string value, rejecting nested structures."""

        value = payload.get(key)
        if isinstance(value, (Mapping, list)):
            raise ConfigurationError(f"{source_label}: `{key}` must be a string value.")
        return normalize_optional_string(value)

    @staticmethod
    def _string_mapping(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> dict[str, str]:
        """Return a normalized `str -> str` mapping for free-form metadata."""

        value = payload.get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError(f"{source_label}: `{key}` must be a mapping.")
        normalized: dict[str, str] = {}
        for item_key, item_value in value.items():
            text = normalize_optional_string(item_value)
            if text is not None:
                normalized[str(item_key)] = text
        return normalized

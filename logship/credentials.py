"""Per-workspace shared-key storage in the OS keyring.

Each workspace key is stored under its own keyring account, `workspace:<id>`,
in the `logship` service, so switching workspaces never reuses another
workspace's key. Keyring backends cannot enumerate accounts, so a non-secret
index account lists the workspace ids that currently hold a key.
"""

from __future__ import annotations

from dataclasses import dataclass
import json

import keyring
from keyring.backend import KeyringBackend
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import CredentialStoreError
from .parsing import normalize_optional_string

SERVICE_NAME = "logship"
_INDEX_ACCOUNT = "workspaces"
_KEY_ACCOUNT_PREFIX = "workspace:"


def _require_workspace_id(workspace_id: str) -> str:
    """Return the stripped workspace id or raise when it is blank."""

    normalized = normalize_optional_string(workspace_id)
    if normalized is None:
        raise CredentialStoreError(
            "A workspace id is required to address a stored shared key.",
            failure_kind="missing_workspace_id",
        )
    return normalized


@dataclass(slots=True)
class WorkspaceKeyStore:
    """Shared keys stored per workspace id in a keyring backend.

    Attributes:
        service_name: Keyring service that groups every logship entry.
        backend: Explicit backend; defaults to the active `keyring` backend.
    """

    service_name: str = SERVICE_NAME
    backend: KeyringBackend | None = None

    def _keyring(self) -> KeyringBackend:
        return self.backend if self.backend is not None else keyring.get_keyring()

    def is_available(self) -> bool:
        """Return whether a real (non-failing) keyring backend is configured."""

        return not isinstance(self._keyring(), fail.Keyring)

    def get_shared_key(self, workspace_id: str) -> str | None:
        """Return the stored key for `workspace_id`, or `None` when absent.

        Raises:
            CredentialStoreError: If the backend fails while reading.
        """

        account = f"{_KEY_ACCOUNT_PREFIX}{_require_workspace_id(workspace_id)}"
        if not self.is_available():
            return None
        try:
            value = self._keyring().get_password(self.service_name, account)
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Reading the stored shared key failed: {exc}",
                failure_kind="keyring_read",
            ) from exc
        return normalize_optional_string(value)

    def set_shared_key(self, workspace_id: str, shared_key: str) -> None:
        """Store `shared_key` for `workspace_id` and record it in the index."""

        normalized_workspace = _require_workspace_id(workspace_id)
        normalized_key = normalize_optional_string(shared_key)
        if normalized_key is None:
            raise CredentialStoreError(
                "Shared key must be a non-empty string.",
                failure_kind="empty_shared_key",
            )
        if not self.is_available():
            raise CredentialStoreError(
                "Secure credential storage is unavailable: no keyring backend is configured.",
                failure_kind="keyring_unavailable",
            )
        try:
            self._keyring().set_password(
                self.service_name,
                f"{_KEY_ACCOUNT_PREFIX}{normalized_workspace}",
                normalized_key,
            )
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Writing the shared key failed: {exc}",
                failure_kind="keyring_write",
            ) from exc
        self._write_index(set(self._read_index()) | {normalized_workspace})

    def clear_shared_key(self, workspace_id: str) -> bool:
        """Delete the key for `workspace_id` and return whether one existed."""

        normalized_workspace = _require_workspace_id(workspace_id)
        if not self.is_available():
            return False
        try:
            self._keyring().delete_password(
                self.service_name, f"{_KEY_ACCOUNT_PREFIX}{normalized_workspace}"
            )
            removed = True
        except PasswordDeleteError:
            removed = False
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Deleting the shared key failed: {exc}",
                failure_kind="keyring_write",
            ) from exc
        self._write_index(set(self._read_index()) - {normalized_workspace})
        return removed

    def stored_workspaces(self) -> list[str]:
        """Return sorted workspace ids whose key is still present in the backend."""

        if not self.is_available():
            return []
        return [
            workspace_id
            for workspace_id in self._read_index()
            if self.get_shared_key(workspace_id) is not None
        ]

    def _read_index(self) -> list[str]:
        try:
            raw = self._keyring().get_password(self.service_name, _INDEX_ACCOUNT)
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Reading the workspace index failed: {exc}",
                failure_kind="keyring_read",
            ) from exc
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError:
            return []
        if not isinstance(entries, list):
            return []
        return sorted({entry for entry in entries if isinstance(entry, str) and entry})

    def _write_index(self, workspace_ids: set[str]) -> None:
        backend = self._keyring()
        try:
            if workspace_ids:
                backend.set_password(
                    self.service_name, _INDEX_ACCOUNT, json.dumps(sorted(workspace_ids))
                )
                return
            try:
                backend.delete_password(self.service_name, _INDEX_ACCOUNT)
            except PasswordDeleteError:
                return
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Updating the workspace index failed: {exc}",
                failure_kind="keyring_write",
            ) from exc


def create_credential_store() -> WorkspaceKeyStore:
    """Create the default keyring-backed workspace key store."""

    return WorkspaceKeyStore()

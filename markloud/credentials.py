"""Secure credential storage helpers for the MarkLoud CLI.

Responsibilities:
- Persist the OpenAI API key in the OS-backed keyring.
- Provide read/write/delete operations that never echo secret values.

Key types:
- `CredentialStore`: interface for provider credential persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .parsing import normalize_optional_string


_DEFAULT_SERVICE_NAME = "markloud"
_DEFAULT_ACCOUNT_NAME = "openai_api_key"


class CredentialStore:
    """Interface for secure provider credential operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get_api_key(self) -> str | None:
        """Load the stored API key from secure storage, when available."""

        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        """Persist an API key in secure storage."""

        raise NotImplementedError

    def clear_api_key(self) -> bool:
        """Delete a stored API key and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME
    account_name: str = _DEFAULT_ACCOUNT_NAME

    def _load_keyring_module(self) -> ModuleType:
        """Return the `keyring` module used for storage calls."""

        return keyring

    def is_available(self) -> bool:
        """Return `False` when keyring resolved to its fail-only backend."""

        backend = self._load_keyring_module().get_keyring()
        return type(backend).__module__ != "keyring.backends.fail"

    def get_api_key(self) -> str | None:
        """Get a normalized API key, returning `None` when missing or unreadable."""

        if not self.is_available():
            return None
        try:
            value = self._load_keyring_module().get_password(
                self.service_name, self.account_name
            )
        except KeyringError:
            return None
        return normalize_optional_string(value)

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key or raise when no backend is usable."""

        if not self.is_available():
            raise RuntimeError(
                "Secure credential storage is unavailable: no usable keyring backend "
                "is configured on this system."
            )

        normalized = normalize_optional_string(api_key)
        if normalized is None:
            raise ValueError("API key must be a non-empty string.")
        self._load_keyring_module().set_password(
            self.service_name, self.account_name, normalized
        )

    def clear_api_key(self) -> bool:
        """Remove the stored API key and report if one was present."""

        if self.get_api_key() is None:
            return False
        try:
            self._load_keyring_module().delete_password(self.service_name, self.account_name)
        except PasswordDeleteError:
            return False
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()

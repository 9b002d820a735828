"""Unit tests for secure credential store helpers."""

from __future__ import annotations

import pytest

from markloud.credentials import KeyringCredentialStore, create_credential_store


class _UsableBackend:
    """Stand-in for a working keyring backend."""


class _FailBackend:
    """Stand-in for keyring's fail-only backend."""

    __module__ = "keyring.backends.fail"


class FakeKeyringModule:
    """In-memory keyring stub for deterministic credential store tests."""

    def __init__(self, backend: object | None = None) -> None:
        """Initialize fake storage dictionary and active backend."""

        self._storage: dict[tuple[str, str], str] = {}
        self._backend = backend if backend is not None else _UsableBackend()

    def get_keyring(self) -> object:
        """Return the active backend instance."""

        return self._backend

    def get_password(self, service_name: str, account_name: str) -> str | None:
        """Return previously stored password if present."""

        return self._storage.get((service_name, account_name))

    def set_password(self, service_name: str, account_name: str, value: str) -> None:
        """Store password value for the service/account key."""

        self._storage[(service_name, account_name)] = value

    def delete_password(self, service_name: str, account_name: str) -> None:
        """Delete password value for the service/account key."""

        self._storage.pop((service_name, account_name), None)


def test_keyring_store_roundtrip_set_get_clear(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keyring store should set/get/clear API key values via keyring backend."""

    fake_keyring = FakeKeyringModule()
    store = KeyringCredentialStore()
    monkeypatch.setattr(
        KeyringCredentialStore, "_load_keyring_module", lambda self: fake_keyring
    )

    assert store.is_available() is True
    assert store.get_api_key() is None

    store.set_api_key("  abc123  ")
    assert store.get_api_key() == "abc123"
    assert fake_keyring._storage == {("markloud", "openai_api_key"): "abc123"}

    assert store.clear_api_key() is True
    assert store.get_api_key() is None
    assert store.clear_api_key() is False


def test_keyring_store_rejects_blank_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """Blank keys should never be persisted."""

    store = KeyringCredentialStore()
    monkeypatch.setattr(
        KeyringCredentialStore, "_load_keyring_module", lambda self: FakeKeyringModule()
    )

    with pytest.raises(ValueError):
        store.set_api_key("   ")


def test_keyring_store_degrades_with_fail_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    """The fail-only backend should read as unavailable and refuse writes."""

    fake_keyring = FakeKeyringModule(backend=_FailBackend())
    store = KeyringCredentialStore()
    monkeypatch.setattr(
        KeyringCredentialStore, "_load_keyring_module", lambda self: fake_keyring
    )

    assert store.is_available() is False
    assert store.get_api_key() is None
    assert store.clear_api_key() is False
    with pytest.raises(RuntimeError, match="unavailable"):
        store.set_api_key("abc123")


def test_create_credential_store_returns_keyring_store() -> None:
    """The default factory should build the keyring-backed store."""

    store = create_credential_store()

    assert isinstance(store, KeyringCredentialStore)
    assert store.service_name == "markloud"

"""Integration-test fixtures for deterministic provider and credential behavior."""

from __future__ import annotations

from pathlib import Path

import pytest

from markloud.credentials import CredentialStore
from markloud.tts.openai_client import OpenAISpeechClient

_MARKLOUD_ENV_KEYS = (
    "OPENAI_API_KEY",
    "OPENAI_TTS_VOICE",
    "OPENAI_TTS_INSTRUCTIONS",
    "MARKLOUD_MODEL",
    "MARKLOUD_RESPONSE_FORMAT",
    "MARKLOUD_SPEED",
    "MARKLOUD_PATTERN",
    "MARKLOUD_MAX_CHARS",
    "MARKLOUD_WORKERS",
)


class MemoryCredentialStore(CredentialStore):
    """In-process credential store replacing the OS keyring in CLI tests."""

    def __init__(self) -> None:
        """Initialize with no stored key."""

        self.api_key: str | None = None

    def is_available(self) -> bool:
        """Report the store as always usable."""

        return True

    def get_api_key(self) -> str | None:
        """Return the stored key, if any."""

        return self.api_key

    def set_api_key(self, api_key: str) -> None:
        """Store a trimmed key."""

        self.api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        """Drop the stored key and report whether one existed."""

        existed = self.api_key is not None
        self.api_key = None
        return existed


@pytest.fixture
def credential_store() -> MemoryCredentialStore:
    """Provide the credential store the CLI will see."""

    return MemoryCredentialStore()


@pytest.fixture(autouse=True)
def _isolate_cli_environment(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    credential_store: MemoryCredentialStore,
) -> None:
    """Run each CLI test in a clean working directory, environment, and keyring."""

    monkeypatch.chdir(tmp_path)
    for key in _MARKLOUD_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("markloud.cli.create_credential_store", lambda: credential_store)
    monkeypatch.setattr("markloud.cli_runtime.create_credential_store", lambda: credential_store)


@pytest.fixture(autouse=True)
def _mock_openai_speech_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock OpenAI speech calls in integration tests to avoid network/key requirements."""

    def _mock_synthesize_speech(self, **kwargs: object) -> bytes:
        """Return deterministic placeholder audio echoing the chunk text."""

        _ = self
        return b"AUDIO[" + str(kwargs["text"]).encode("utf-8") + b"]"

    monkeypatch.setattr(OpenAISpeechClient, "synthesize_speech", _mock_synthesize_speech)

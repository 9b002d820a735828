"""Shared pytest fixtures for the full MarkLoud test suite."""

from __future__ import annotations

from pathlib import Path
import threading
from typing import Any, Callable

import pytest

from markloud.config import ConversionConfig
from markloud.errors import SynthesisError


class RecordingSynthesizer:
    """Thread-safe synthesizer double that records every chunk it receives.

    Chunks containing a key of `failures` raise the mapped error instead of
    returning audio.
    """

    def __init__(self) -> None:
        """Initialize call storage and failure map."""

        self.calls: list[str] = []
        self.failures: dict[str, SynthesisError] = {}
        self.on_call: Callable[[str], None] | None = None
        self._lock = threading.Lock()

    def synthesize(self, config: ConversionConfig, text: str) -> bytes:
        """Record the chunk and return deterministic placeholder audio."""

        _ = config
        with self._lock:
            self.calls.append(text)
        if self.on_call is not None:
            self.on_call(text)
        for marker, error in self.failures.items():
            if marker in text:
                raise error
        return f"<{text}>".encode("utf-8")


@pytest.fixture
def recording_synthesizer() -> RecordingSynthesizer:
    """Provide a fresh recording synthesizer."""

    return RecordingSynthesizer()


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., ConversionConfig]:
    """Build configs rooted at `tmp_path/docs` and `tmp_path/out` with a test key."""

    def _make(**overrides: Any) -> ConversionConfig:
        values: dict[str, Any] = {
            "input_dir": tmp_path / "docs",
            "output_dir": tmp_path / "out",
            "api_key": "test-key",
        }
        values.update(overrides)
        return ConversionConfig(**values)

    return _make


@pytest.fixture
def write_markdown(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a Markdown file under `tmp_path/docs`, creating parent directories."""

    def _write(relative_path: str, content: str) -> Path:
        path = tmp_path / "docs" / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write

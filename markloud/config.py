"""Configuration model and loaders for MarkLoud.

Responsibilities:
- Define per-run conversion settings as an immutable dataclass.
- Resolve settings from CLI, secure storage, environment, and YAML sources
  with deterministic precedence.
- Validate settings once, before a run starts.

Key types:
- `ConversionConfig`: immutable settings for one conversion run.
- `RuntimeConfigSources`: value sources for precedence resolution.
- `ConfigLoader`: YAML loading and source resolution helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from .parsing import (
    normalize_optional_string,
    parse_boolean,
    parse_float,
    parse_positive_int,
)


DEFAULT_MODEL = "tts-1-hd-1106"
DEFAULT_VOICE = "alloy"
DEFAULT_RESPONSE_FORMAT = "aac"
DEFAULT_INSTRUCTIONS = "Speak clearly for podcast listening."
DEFAULT_PATTERN = "*.md"
DEFAULT_MAX_CHARS = 4000
DEFAULT_OUTPUT_DIR = Path("audio_out")
_MIN_SPEED = 0.25
_MAX_SPEED = 4.0


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI options or interactive prompts.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
        file: Values loaded from a YAML config file.
    """

    cli: Mapping[str, Any] = field(default_factory=dict)
    secure: Mapping[str, Any] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)
    file: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ConversionConfig:
    """Settings for one conversion run.

    Attributes:
        input_dir: Root directory scanned for Markdown files.
        output_dir: Root directory receiving mirrored audio files.
        voice: Provider voice identifier.
        model: Provider TTS model identifier.
        response_format: Audio format requested from the provider; also the
            destination file extension.
        speed: Speech speed multiplier (sent only when different from 1.0).
        overwrite: Re-synthesize files whose destination already exists.
        instructions: Optional voice instructions (sent only when non-blank).
        api_key: Provider credential; required before any synthesis call.
        pattern: Filename glob matched against base names.
        max_chars: Maximum characters per synthesis chunk.
        workers: Explicit concurrency limit, or `None` for the CPU-derived default.
    """

    input_dir: Path
    output_dir: Path = DEFAULT_OUTPUT_DIR
    voice: str = DEFAULT_VOICE
    model: str = DEFAULT_MODEL
    response_format: str = DEFAULT_RESPONSE_FORMAT
    speed: float = 1.0
    overwrite: bool = False
    instructions: str = DEFAULT_INSTRUCTIONS
    api_key: str | None = None
    pattern: str = DEFAULT_PATTERN
    max_chars: int = DEFAULT_MAX_CHARS
    workers: int | None = None

    def validate(self) -> None:
        """Validate non-credential settings before a run starts."""

        self._require_non_empty(self.voice, "voice")
        self._require_non_empty(self.model, "model")
        self._require_non_empty(self.response_format, "response_format")
        self._require_non_empty(self.pattern, "pattern")
        extension = self.response_format.strip()
        if not extension or any(separator in extension for separator in "./\\"):
            raise ValueError(
                "`response_format` must be a bare file extension such as `aac` or `mp3`."
            )
        if not _MIN_SPEED <= self.speed <= _MAX_SPEED:
            raise ValueError(f"`speed` must be between {_MIN_SPEED} and {_MAX_SPEED}.")
        if self.max_chars <= 0:
            raise ValueError("`max_chars` must be a positive integer.")
        if self.workers is not None and self.workers <= 0:
            raise ValueError("`workers` must be a positive integer.")

    def has_api_key(self) -> bool:
        """Return whether a non-blank provider credential is configured."""

        return normalize_optional_string(self.api_key) is not None

    def as_log_metadata(self) -> dict[str, str]:
        """Return non-secret settings safe to emit in run logs."""

        return {
            "input_dir": str(self.input_dir),
            "output_dir": str(self.output_dir),
            "voice": self.voice,
            "model": self.model,
            "format": self.response_format,
            "speed": f"{self.speed:g}",
            "overwrite": "true" if self.overwrite else "false",
            "pattern": self.pattern,
            "max_chars": str(self.max_chars),
        }

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


def _parse_path(value: object, field_name: str) -> Path:
    """Parse a non-empty path value."""

    normalized = normalize_optional_string(value)
    if normalized is None:
        raise ValueError(f"`{field_name}` must be a non-empty path.")
    return Path(normalized).expanduser()


def _parse_string(value: object, field_name: str) -> str:
    """Parse a non-empty string value."""

    normalized = normalize_optional_string(value)
    if normalized is None:
        raise ValueError(f"`{field_name}` must be a non-empty string.")
    return normalized


def _parse_instructions(value: object, field_name: str) -> str:
    """Parse instructions, where an explicit blank value disables them."""

    _ = field_name
    return "" if value is None else str(value).strip()


_FieldParser = Callable[[object, str], Any]

# field name -> (environment variable or None, parser)
_FIELDS: dict[str, tuple[str | None, _FieldParser]] = {
    "input_dir": (None, _parse_path),
    "output_dir": (None, _parse_path),
    "voice": ("OPENAI_TTS_VOICE", _parse_string),
    "model": ("MARKLOUD_MODEL", _parse_string),
    "response_format": ("MARKLOUD_RESPONSE_FORMAT", _parse_string),
    "speed": ("MARKLOUD_SPEED", parse_float),
    "overwrite": (None, parse_boolean),
    "instructions": ("OPENAI_TTS_INSTRUCTIONS", _parse_instructions),
    "api_key": ("OPENAI_API_KEY", _parse_string),
    "pattern": ("MARKLOUD_PATTERN", _parse_string),
    "max_chars": ("MARKLOUD_MAX_CHARS", parse_positive_int),
    "workers": ("MARKLOUD_WORKERS", parse_positive_int),
}


class ConfigLoader:
    """Factory methods for creating `ConversionConfig` from external sources."""

    @staticmethod
    def load_yaml(path: Path) -> dict[str, Any]:
        """Load and validate a YAML settings mapping.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the payload is not a mapping, has unknown keys, or
                holds values of the wrong type.
        """

        raw_text = path.read_text(encoding="utf-8")
        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")

        unknown = sorted(str(key) for key in payload if key not in _FIELDS)
        if unknown:
            raise ValueError(
                f"YAML config `{path}` includes unsupported key(s): {', '.join(unknown)}."
            )

        settings: dict[str, Any] = {}
        for key, raw_value in payload.items():
            if raw_value is None:
                continue
            _, parser = _FIELDS[key]
            try:
                settings[key] = parser(raw_value, key)
            except ValueError as exc:
                raise ValueError(f"YAML config `{path}`: {exc}") from exc
        return settings

    @staticmethod
    def resolve(sources: RuntimeConfigSources) -> ConversionConfig:
        """Build a validated config with precedence `cli` > `secure` > `env` > `file` > default.

        Raises:
            ValueError: If the input directory is missing from every source or a
                value fails to parse or validate.
        """

        values: dict[str, Any] = {}
        for key, (env_key, parser) in _FIELDS.items():
            resolved = ConfigLoader._lookup(key, env_key, sources)
            if resolved is None:
                continue
            source_label, raw_value = resolved
            try:
                values[key] = parser(raw_value, key)
            except ValueError as exc:
                raise ValueError(f"Invalid {source_label} value: {exc}") from exc

        if "input_dir" not in values:
            raise ValueError("`input_dir` could not be resolved from CLI or config file.")

        config = ConversionConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _lookup(
        key: str,
        env_key: str | None,
        sources: RuntimeConfigSources,
    ) -> tuple[str, object] | None:
        """Return the first present value for a field together with its source label."""

        for label, mapping in (("CLI", sources.cli), ("secure storage", sources.secure)):
            if key in mapping and mapping[key] is not None:
                return label, mapping[key]
        if env_key is not None and normalize_optional_string(sources.env.get(env_key)) is not None:
            return f"environment `{env_key}`", sources.env[env_key]
        if key in sources.file and sources.file[key] is not None:
            return "config file", sources.file[key]
        return None

"""CLI runtime resolution helpers.

This module isolates config-file loading, runtime source assembly, and
secure API-key lookup from the command wiring layer.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from .config import ConfigLoader, ConversionConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Protocol for secure credential store reads used by runtime resolution."""

    def get_api_key(self) -> str | None:
        """Return currently stored API key, if available."""


def collect_cli_values(**options: Any) -> dict[str, Any]:
    """Keep only options the user actually provided.

    Strings are normalized; blank strings count as not provided.
    """

    values: dict[str, Any] = {}
    for key, value in options.items():
        if value is None:
            continue
        if isinstance(value, str):
            normalized = normalize_optional_string(value)
            if normalized is None:
                continue
            value = normalized
        values[key] = value
    return values


def load_config_file(config_path: Path | None) -> dict[str, Any]:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return {}

    try:
        return ConfigLoader.load_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to read config file `{config_path}`: {exc}",
            hint="Verify file permissions.",
        ) from exc


def load_secure_values(
    credential_store_factory: Callable[[], CredentialStoreProtocol] | None = None,
) -> dict[str, str]:
    """Return the keyring-stored API key as a runtime source mapping."""

    factory = credential_store_factory or create_credential_store
    stored_api_key = factory().get_api_key()
    if stored_api_key is None:
        return {}
    return {"api_key": stored_api_key}


def build_runtime_sources(
    cli_values: Mapping[str, Any],
    config_path: Path | None = None,
    credential_store_factory: Callable[[], CredentialStoreProtocol] | None = None,
    environ: Mapping[str, str] | None = None,
) -> RuntimeConfigSources:
    """Assemble every value source for one run."""

    return RuntimeConfigSources(
        cli=dict(cli_values),
        secure=load_secure_values(credential_store_factory),
        env=dict(os.environ if environ is None else environ),
        file=load_config_file(config_path),
    )


def resolve_conversion_config(sources: RuntimeConfigSources) -> ConversionConfig:
    """Resolve a validated `ConversionConfig`, mapping failures to stage errors."""

    try:
        return ConfigLoader.resolve(sources)
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Pass `--input <dir>` or fix the offending option and rerun.",
        ) from exc


def resolve_api_key(sources: RuntimeConfigSources) -> str | None:
    """Return the API key that a run would use, without validating other fields."""

    for candidate in (
        sources.cli.get("api_key"),
        sources.secure.get("api_key"),
        sources.env.get("OPENAI_API_KEY"),
        sources.file.get("api_key"),
    ):
        normalized = normalize_optional_string(candidate)
        if normalized is not None:
            return normalized
    return None

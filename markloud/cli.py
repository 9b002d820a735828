"""Command-line interface for MarkLoud.

Responsibilities:
- Expose the conversion run as a scriptable command (`--input` given) and as
  an interactive terminal session (no `--input`).
- Manage the keyring-stored API key via the `credentials` command.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any

from dotenv import load_dotenv
import typer

from . import __version__
from .cli_rendering import (
    ProgressPrinter,
    echo_command_error,
    echo_run_summary,
    exit_with_command_error,
)
from .cli_runtime import (
    build_runtime_sources,
    collect_cli_values,
    resolve_api_key,
    resolve_conversion_config,
)
from .config import DEFAULT_OUTPUT_DIR, DEFAULT_VOICE, ConversionConfig
from .credentials import create_credential_store
from .errors import PipelineStageError
from .models.datatypes import RunReport, RunState
from .parsing import normalize_optional_string
from .pipeline import RunOrchestrator
from .telemetry.logger import ErrorLog, RunLogger
from .tts import OpenAISpeechSynthesizer

COMMAND_NAME = "markloud"

app = typer.Typer(
    name=COMMAND_NAME,
    add_completion=False,
    help="Convert a tree of Markdown files into narrated audio files.",
)


def _version_callback(value: bool) -> None:
    """Print the version banner and stop."""

    if value:
        typer.echo(f"{COMMAND_NAME} {__version__}")
        raise typer.Exit()


def _execute_run(config: ConversionConfig) -> RunReport:
    """Run one conversion with live progress output."""

    orchestrator = RunOrchestrator(
        OpenAISpeechSynthesizer(),
        observer=ProgressPrinter(),
        run_logger=RunLogger(),
        error_log=ErrorLog(),
    )
    return orchestrator.run(config)


def _report_failed(report: RunReport) -> bool:
    """Print the preparation error of a failed run and return whether it failed."""

    if report.state is RunState.FAILED and report.error is not None:
        echo_command_error(COMMAND_NAME, report.error)
        return True
    return False


def _run_non_interactive(cli_values: dict[str, Any], config_file: Path | None) -> None:
    """Resolve configuration, run to completion, and exit non-zero on any failure."""

    try:
        sources = build_runtime_sources(cli_values, config_file)
        config = resolve_conversion_config(sources)
    except Exception as exc:
        exit_with_command_error(COMMAND_NAME, exc)

    report = _execute_run(config)
    if _report_failed(report):
        raise typer.Exit(code=1)
    echo_run_summary(report, config.output_dir)
    if report.summary.failed:
        raise typer.Exit(code=1)


def _prompt_session_values(cli_values: dict[str, Any]) -> dict[str, Any]:
    """Prompt for the per-run settings of one interactive conversion."""

    values = dict(cli_values)
    values["input_dir"] = typer.prompt(
        "Input directory",
        default=str(cli_values.get("input_dir", ".")),
    ).strip()
    values["output_dir"] = typer.prompt(
        "Output directory",
        default=str(cli_values.get("output_dir", DEFAULT_OUTPUT_DIR)),
    ).strip()
    voice_default = cli_values.get("voice") or normalize_optional_string(
        os.environ.get("OPENAI_TTS_VOICE")
    )
    values["voice"] = typer.prompt("Voice", default=voice_default or DEFAULT_VOICE).strip()
    values["overwrite"] = typer.confirm(
        "Overwrite existing audio files?",
        default=bool(cli_values.get("overwrite", False)),
    )
    return values


def _run_interactive(cli_values: dict[str, Any], config_file: Path | None) -> None:
    """Prompt, run, summarize, and offer to run again until the user declines."""

    typer.secho("MarkLoud: Markdown to speech", bold=True)
    while True:
        try:
            sources = build_runtime_sources(cli_values, config_file)
        except Exception as exc:
            exit_with_command_error(COMMAND_NAME, exc)

        if resolve_api_key(sources) is not None:
            typer.secho("API key found.", fg=typer.colors.GREEN)
        else:
            typer.secho(
                "API key missing: set OPENAI_API_KEY or run "
                "`markloud credentials --set-api-key`.",
                fg=typer.colors.RED,
            )

        session_values = _prompt_session_values(cli_values)
        try:
            config = resolve_conversion_config(
                build_runtime_sources(session_values, config_file)
            )
        except Exception as exc:
            echo_command_error(COMMAND_NAME, exc)
        else:
            report = _execute_run(config)
            if not _report_failed(report):
                echo_run_summary(report, config.output_dir)

        if not typer.confirm("Run again?", default=False):
            return


@app.callback(invoke_without_command=True)
def convert_command(
    ctx: typer.Context,
    input_dir: Annotated[
        Path | None,
        typer.Option(
            "-i",
            "--input",
            help="Directory scanned recursively for Markdown files. Omit for interactive mode.",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Output directory (default: ./audio_out)."),
    ] = None,
    voice: Annotated[
        str | None,
        typer.Option("--voice", help="TTS voice (default: $OPENAI_TTS_VOICE or `alloy`)."),
    ] = None,
    overwrite: Annotated[
        bool | None,
        typer.Option(
            "--overwrite/--no-overwrite",
            help="Re-synthesize files whose audio output already exists.",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Optional YAML config file."),
    ] = None,
    model: Annotated[str | None, typer.Option("--model", help="TTS model id.")] = None,
    response_format: Annotated[
        str | None,
        typer.Option("--format", help="Audio format and output file extension (default: aac)."),
    ] = None,
    speed: Annotated[
        float | None,
        typer.Option("--speed", help="Speech speed multiplier between 0.25 and 4.0."),
    ] = None,
    instructions: Annotated[
        str | None,
        typer.Option("--instructions", help="Voice instructions sent with each request."),
    ] = None,
    pattern: Annotated[
        str | None,
        typer.Option("--pattern", help="Filename glob for source files (default: *.md)."),
    ] = None,
    max_chars: Annotated[
        int | None,
        typer.Option("--max-chars", help="Maximum characters per synthesis request."),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", help="Concurrent file limit (default: CPU count minus 2)."),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option(
            "--api-key",
            help="OpenAI API key for this run (overrides keyring and OPENAI_API_KEY).",
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Print the version and exit.",
        ),
    ] = False,
) -> None:
    """Convert Markdown files under the input directory into audio files."""

    _ = version
    if ctx.invoked_subcommand is not None:
        return

    cli_values = collect_cli_values(
        input_dir=input_dir,
        output_dir=output_dir,
        voice=voice,
        overwrite=overwrite,
        model=model,
        response_format=response_format,
        speed=speed,
        instructions=instructions,
        pattern=pattern,
        max_chars=max_chars,
        workers=workers,
        api_key=api_key,
    )
    if input_dir is None:
        _run_interactive(cli_values, config_file)
    else:
        _run_non_interactive(cli_values, config_file)


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage the securely stored OpenAI API key."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "OpenAI API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        if credential_store.clear_api_key():
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored OpenAI API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""

    load_dotenv()
    app()


if __name__ == "__main__":
    main()

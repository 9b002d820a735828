"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
per-file progress lines, and run summaries.
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import JobOutcome, JobResult, ProgressEvent, RunReport

_BAR_WIDTH = 20
_OUTCOME_COLORS = {
    JobOutcome.DONE: typer.colors.GREEN,
    JobOutcome.SKIPPED: typer.colors.BLUE,
    JobOutcome.EMPTY: typer.colors.YELLOW,
    JobOutcome.FAILED: typer.colors.RED,
}


def echo_command_error(command_name: str, exc: BaseException) -> None:
    """Print concise diagnostics for a failed command or run."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)


def exit_with_command_error(command_name: str, exc: BaseException) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    echo_command_error(command_name, exc)
    raise typer.Exit(code=1) from exc


def render_progress_bar(current: int, total: int, width: int = _BAR_WIDTH) -> str:
    """Return a fixed-width `[####----]` bar for `current` out of `total`."""

    if total <= 0:
        filled = 0
    else:
        filled = min(width, (max(0, current) * width) // total)
    return "[" + "#" * filled + "-" * (width - filled) + "]"


class ProgressPrinter:
    """Run observer that prints one line per progress event and per job result."""

    def __call__(self, message: ProgressEvent | JobResult) -> None:
        if isinstance(message, ProgressEvent):
            self.on_progress(message)
        else:
            self.on_result(message)

    def on_progress(self, event: ProgressEvent) -> None:
        """Print a chunk-progress line for one job."""

        bar = render_progress_bar(event.current, event.total)
        typer.echo(f"[progress] {event.job.display_name} {bar} {event.current}/{event.total}")

    def on_result(self, result: JobResult) -> None:
        """Print a job's terminal outcome, with the error for failures."""

        label = "cancelled" if result.cancelled else result.outcome.value
        line = f"[{label}] {result.job.display_name}"
        if result.outcome is JobOutcome.FAILED and not result.cancelled:
            line = f"{line}: {result.error_message}"
        typer.secho(line, fg=_OUTCOME_COLORS[result.outcome])


def echo_run_summary(report: RunReport, output_dir: Path) -> None:
    """Print outcome counters, output directory, and the error log location."""

    summary = report.summary
    typer.echo(
        f"done {summary.done} · skipped {summary.skipped} · "
        f"empty {summary.empty} · failed {summary.failed}"
    )
    typer.echo(f"Output directory: {output_dir}")
    if report.error_log_path is not None:
        typer.echo(f"Error log: {report.error_log_path}")

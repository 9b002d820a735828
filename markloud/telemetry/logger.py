"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Keep an append-only, human-readable error log of failed jobs per run.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import sys
import threading
from typing import TextIO

from loguru import logger

from ..models.datatypes import JobResult

DEFAULT_ERROR_LOG_PATH = Path("logs") / "markloud_errors.log"


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase logs for CLI-observable run activity."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Route `loguru` output to `sink` with a bare message format."""

        self._sink = sink or sys.stderr
        logger.remove()
        logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)

    def log_job_result(self, result: JobResult) -> None:
        """Emit one job's terminal outcome."""

        context: dict[str, object] = {
            "file": result.job.display_name,
            "outcome": result.outcome.value,
            "chunks": result.chunks,
        }
        if result.error is not None:
            context["error_type"] = type(result.error).__name__
        level = "WARNING" if result.error is not None else "INFO"
        self._emit(level, "job", "synthesize", **context)


class ErrorLog:
    """Append-only text log of job failures, framed by run start/finish markers."""

    def __init__(self, path: Path = DEFAULT_ERROR_LOG_PATH) -> None:
        self.path = path
        self._handle: TextIO | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        """Return whether a run is currently being recorded."""

        return self._handle is not None

    def open_run(self) -> bool:
        """Open the log for appending and write the run-start marker.

        The error log only aids diagnosis: when it cannot be opened a warning
        is logged, the run proceeds, and later writes become no-ops.

        Returns:
            `True` when the log is open for this run.
        """

        with self._lock:
            if self._handle is not None:
                return True
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                handle = self.path.open("a", encoding="utf-8")
            except OSError as exc:
                logger.warning("error log disabled: cannot open {}: {}", self.path, exc)
                return False
            self._handle = handle
            self._handle.write(f"\n=== MarkLoud run {_timestamp()} ===\n")
            self._handle.flush()
            return True

    def record_failure(self, result: JobResult) -> None:
        """Append one line for a failed job."""

        with self._lock:
            if self._handle is None:
                return
            self._handle.write(f"ERROR {result.job.display_name}: {result.error_message}\n")
            self._handle.flush()

    def close_run(self) -> None:
        """Write the run-finished marker and close the file."""

        with self._lock:
            if self._handle is None:
                return
            self._handle.write(f"=== run finished {_timestamp()} ===\n")
            self._handle.close()
            self._handle = None


def _timestamp() -> str:
    """Return the local time as an ISO-8601 string with offset, to the second."""

    return datetime.now().astimezone().isoformat(timespec="seconds")

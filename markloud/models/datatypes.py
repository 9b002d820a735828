"""Core datatypes shared across MarkLoud modules.

Responsibilities:
- Represent immutable records exchanged between discovery, processing, and
  run aggregation.
- Provide explicit typing for progress and outcome messages.

Key types:
- `FileJob`, `JobOutcome`, `JobResult`, `ProgressEvent`, `RunSummary`,
  `RunState`, and `RunReport`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True, slots=True)
class FileJob:
    """One Markdown source file mapped to one destination audio file.

    Attributes:
        source_path: Absolute path of the Markdown source.
        relative_path: Source path relative to the input root (display key).
        dest_path: Destination audio path mirrored under the output directory.
    """

    source_path: Path
    relative_path: Path
    dest_path: Path

    @property
    def display_name(self) -> str:
        """Return the POSIX-style relative path used in progress and logs."""

        return self.relative_path.as_posix()


class JobOutcome(str, Enum):
    """Terminal status of one job."""

    DONE = "done"
    SKIPPED = "skipped"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class JobResult:
    """Terminal result of processing one job.

    Attributes:
        job: Job this result belongs to.
        outcome: Terminal outcome.
        chunks: Chunks synthesized (total on success, completed so far on failure).
        error: Underlying error for failed jobs.
        cancelled: Whether the failure was caused by run cancellation.
    """

    job: FileJob
    outcome: JobOutcome
    chunks: int = 0
    error: BaseException | None = None
    cancelled: bool = False

    @property
    def error_message(self) -> str:
        """Return a one-line description of the error, or an empty string."""

        if self.error is None:
            return ""
        message = str(self.error).strip()
        return message or type(self.error).__name__


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Chunk-level progress for one job; `current == 0` marks the job start."""

    job: FileJob
    current: int
    total: int


@dataclass(slots=True)
class RunSummary:
    """Outcome counters for one run, mutated only by the aggregating consumer."""

    done: int = 0
    skipped: int = 0
    empty: int = 0
    failed: int = 0

    def record(self, result: JobResult) -> None:
        """Fold one job result into the counters."""

        if result.outcome is JobOutcome.DONE:
            self.done += 1
        elif result.outcome is JobOutcome.SKIPPED:
            self.skipped += 1
        elif result.outcome is JobOutcome.EMPTY:
            self.empty += 1
        else:
            self.failed += 1

    @property
    def total(self) -> int:
        """Return the number of recorded results."""

        return self.done + self.skipped + self.empty + self.failed


class RunState(str, Enum):
    """Lifecycle state of one conversion run."""

    PREPARING = "preparing"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RunReport:
    """Final record of one run.

    Attributes:
        state: Terminal run state (`COMPLETED` or `FAILED`).
        summary: Outcome counters.
        results: Job results in arrival order.
        error: Preparation error when the run never started.
        error_log_path: Path of the append-only error log, when one was opened.
    """

    state: RunState
    summary: RunSummary
    results: tuple[JobResult, ...] = field(default_factory=tuple)
    error: BaseException | None = None
    error_log_path: Path | None = None

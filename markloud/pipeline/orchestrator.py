"""Run orchestration for MarkLoud.

Responsibilities:
- Validate a run's configuration and discover its jobs (`PREPARING`).
- Fan jobs out to worker threads behind a fixed-capacity admission gate
  (`RUNNING`).
- Aggregate results and relay progress on the calling thread (`COMPLETED`).

Workers never touch shared run state: they publish `ProgressEvent`s and
`JobResult`s on a queue, and the thread that called `run` is the only reader.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
import os
from pathlib import Path
import queue
import threading

from loguru import logger

from ..config import ConversionConfig
from ..errors import PreparationError
from ..io.discovery import discover_jobs
from ..models.datatypes import (
    FileJob,
    JobOutcome,
    JobResult,
    ProgressEvent,
    RunReport,
    RunState,
    RunSummary,
)
from ..telemetry.logger import ErrorLog, RunLogger
from ..tts.synthesizer import SpeechSynthesizer
from .processor import FileProcessor

WORKER_RESERVE = 2

RunMessage = ProgressEvent | JobResult
RunObserver = Callable[[RunMessage], None]


def default_worker_count(cpu_count: int | None = None) -> int:
    """Return available parallelism minus a fixed reserve, never below one."""

    available = os.cpu_count() if cpu_count is None else cpu_count
    return max(1, (available or 1) - WORKER_RESERVE)


class RunOrchestrator:
    """Execute one conversion run over every discovered job.

    An orchestrator instance drives exactly one run; create a new one to run
    again.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        observer: RunObserver | None = None,
        run_logger: RunLogger | None = None,
        error_log: ErrorLog | None = None,
        worker_count: int | None = None,
    ) -> None:
        self.processor = FileProcessor(synthesizer)
        self.observer = observer
        self.run_logger = run_logger
        self.error_log = error_log
        self.worker_count = worker_count
        self.state: RunState | None = None
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Raise the run-scoped cancellation signal."""

        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        """Return whether cancellation has been requested."""

        return self._cancel_event.is_set()

    def prepare(self, config: ConversionConfig) -> list[FileJob]:
        """Validate configuration and discover jobs.

        Raises:
            PreparationError: On a missing credential, invalid settings, a
                missing input directory, a traversal failure, or zero matches.
        """

        if not config.has_api_key():
            raise PreparationError(
                stage="config",
                detail="OPENAI_API_KEY is not set.",
                hint=(
                    "Export `OPENAI_API_KEY`, pass `--api-key`, or store one with "
                    "`markloud credentials --set-api-key`."
                ),
            )
        try:
            config.validate()
        except ValueError as exc:
            raise PreparationError(
                stage="config",
                detail=str(exc),
                hint="Fix the option, environment variable, or config file value and rerun.",
            ) from exc

        if not config.input_dir.is_dir():
            raise PreparationError(
                stage="config",
                detail=f"Input directory not found: {config.input_dir}",
                hint="Pass an existing directory via `--input`.",
            )

        try:
            jobs = discover_jobs(
                config.input_dir,
                config.output_dir,
                config.pattern,
                config.response_format,
            )
        except OSError as exc:
            raise PreparationError(
                stage="discover",
                detail=f"Failed to scan `{config.input_dir}`: {exc}",
                hint="Check directory permissions and symlinks under the input directory.",
            ) from exc

        if not jobs:
            raise PreparationError(
                stage="discover",
                detail=f"No markdown files matching {config.pattern} in {config.input_dir}",
                hint="Check the input directory or pass a different `--pattern`.",
            )
        return jobs

    def run(self, config: ConversionConfig) -> RunReport:
        """Prepare and execute a run, returning its final report.

        Preparation failures end the run in `FAILED` without starting any job;
        job-level failures never abort the run.
        """

        if self.state is not None:
            raise RuntimeError("RunOrchestrator instances drive a single run.")

        summary = RunSummary()
        self.state = RunState.PREPARING
        self._log_start("prepare", **config.as_log_metadata())
        try:
            jobs = self.prepare(config)
        except PreparationError as exc:
            self.state = RunState.FAILED
            if self.run_logger is not None:
                self.run_logger.log_stage_failure(exc.stage, type(exc).__name__)
            return RunReport(state=RunState.FAILED, summary=summary, error=exc)
        self._log_complete("prepare", jobs=len(jobs))

        self.state = RunState.RUNNING
        workers = self.worker_count or config.workers or default_worker_count()
        self._log_start("synthesize", jobs=len(jobs), workers=workers)
        error_log_path: Path | None = None
        if self.error_log is not None and self.error_log.open_run():
            error_log_path = self.error_log.path
        try:
            results = self._execute(jobs, config, summary, workers)
        finally:
            if self.error_log is not None:
                self.error_log.close_run()

        self.state = RunState.COMPLETED
        self._log_complete(
            "synthesize",
            done=summary.done,
            skipped=summary.skipped,
            empty=summary.empty,
            failed=summary.failed,
        )
        return RunReport(
            state=RunState.COMPLETED,
            summary=summary,
            results=tuple(results),
            error_log_path=error_log_path,
        )

    def _execute(
        self,
        jobs: list[FileJob],
        config: ConversionConfig,
        summary: RunSummary,
        workers: int,
    ) -> list[JobResult]:
        """Run all jobs on worker threads and fold their messages on this thread."""

        messages: queue.Queue[RunMessage] = queue.Queue()
        gate = threading.BoundedSemaphore(workers)

        def _work(job: FileJob) -> None:
            with gate:
                try:
                    result = self.processor.process(
                        job,
                        config,
                        progress=messages.put,
                        cancel_event=self._cancel_event,
                    )
                except Exception as exc:
                    result = JobResult(job=job, outcome=JobOutcome.FAILED, error=exc)
            messages.put(result)

        results: list[JobResult] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="markloud") as executor:
            for job in jobs:
                executor.submit(_work, job)
            try:
                while len(results) < len(jobs):
                    try:
                        message = messages.get()
                    except KeyboardInterrupt:
                        self.cancel()
                        continue
                    if isinstance(message, JobResult):
                        results.append(message)
                        self._record(message, summary)
                    self._notify(message)
            except BaseException:
                self.cancel()
                raise
        return results

    def _record(self, result: JobResult, summary: RunSummary) -> None:
        """Fold one result into the summary and the logs."""

        summary.record(result)
        if self.run_logger is not None:
            self.run_logger.log_job_result(result)
        if result.outcome is JobOutcome.FAILED and self.error_log is not None:
            self.error_log.record_failure(result)

    def _notify(self, message: RunMessage) -> None:
        """Relay one message to the observer; observer errors never end the run."""

        if self.observer is None:
            return
        try:
            self.observer(message)
        except Exception as exc:
            logger.warning(
                "run observer failed on {}: {}: {}",
                type(message).__name__,
                type(exc).__name__,
                exc,
            )

    def _log_start(self, stage: str, **context: object) -> None:
        if self.run_logger is not None:
            self.run_logger.log_stage_start(stage, **context)

    def _log_complete(self, stage: str, **context: object) -> None:
        if self.run_logger is not None:
            self.run_logger.log_stage_complete(stage, **context)

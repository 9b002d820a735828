"""Single-file conversion: Markdown source to one destination audio file.

Responsibilities:
- Enforce idempotent skip of already-converted files.
- Run normalize, chunk, and per-chunk synthesis strictly in order.
- Publish the concatenated audio atomically, or nothing at all.
"""

from __future__ import annotations

from collections.abc import Callable
import threading

from ..config import ConversionConfig
from ..errors import JobCancelledError
from ..io.storage import ensure_parent_dir, write_bytes_atomic
from ..models.datatypes import FileJob, JobOutcome, JobResult, ProgressEvent
from ..text.chunking import Chunker
from ..text.normalizer import MarkdownNormalizer
from ..tts.synthesizer import SpeechSynthesizer

ProgressCallback = Callable[[ProgressEvent], None]


class FileProcessor:
    """Convert one `FileJob` into audio using an injected synthesizer."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        normalizer: MarkdownNormalizer | None = None,
    ) -> None:
        self.synthesizer = synthesizer
        self.normalizer = normalizer or MarkdownNormalizer()

    def process(
        self,
        job: FileJob,
        config: ConversionConfig,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> JobResult:
        """Process one job and return its terminal result.

        Job-level failures (I/O, synthesis, cancellation) are returned as
        `FAILED` results rather than raised.
        """

        if _cancelled(cancel_event):
            return _cancelled_result(job, chunks=0)

        if not config.overwrite and job.dest_path.exists():
            return JobResult(job=job, outcome=JobOutcome.SKIPPED)

        try:
            markdown = job.source_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            return JobResult(job=job, outcome=JobOutcome.FAILED, error=exc)

        plain = self.normalizer.normalize(markdown)
        if not plain.strip():
            return JobResult(job=job, outcome=JobOutcome.EMPTY)

        chunks = Chunker(config.max_chars).split(plain)
        if not chunks:
            return JobResult(job=job, outcome=JobOutcome.EMPTY)

        try:
            ensure_parent_dir(job.dest_path)
        except OSError as exc:
            return JobResult(job=job, outcome=JobOutcome.FAILED, error=exc)

        total = len(chunks)
        if progress is not None:
            progress(ProgressEvent(job=job, current=0, total=total))

        audio_parts: list[bytes] = []
        for index, chunk in enumerate(chunks, start=1):
            if _cancelled(cancel_event):
                return _cancelled_result(job, chunks=len(audio_parts))
            if progress is not None:
                progress(ProgressEvent(job=job, current=index, total=total))
            try:
                audio_parts.append(self.synthesizer.synthesize(config, chunk))
            except Exception as exc:
                return JobResult(
                    job=job,
                    outcome=JobOutcome.FAILED,
                    chunks=len(audio_parts),
                    error=exc,
                )

        try:
            write_bytes_atomic(job.dest_path, b"".join(audio_parts))
        except OSError as exc:
            return JobResult(job=job, outcome=JobOutcome.FAILED, chunks=total, error=exc)

        return JobResult(job=job, outcome=JobOutcome.DONE, chunks=total)


def _cancelled(cancel_event: threading.Event | None) -> bool:
    """Return whether the run-scoped cancellation signal has been raised."""

    return cancel_event is not None and cancel_event.is_set()


def _cancelled_result(job: FileJob, chunks: int) -> JobResult:
    """Build the terminal result for a job interrupted by cancellation."""

    return JobResult(
        job=job,
        outcome=JobOutcome.FAILED,
        chunks=chunks,
        error=JobCancelledError(),
        cancelled=True,
    )

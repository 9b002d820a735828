"""Domain exceptions for conversion runs and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class PreparationError(PipelineStageError):
    """Raised when a run cannot start (bad config, missing input, no matches)."""


class SynthesisError(RuntimeError):
    """Raised when one speech synthesis request fails.

    The `retryable` flag is the sole input to the retry policy: transient
    failures (rate limiting, server errors, transport timeouts) set it, while
    authentication and request errors do not.
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for job-level diagnostics."""

        super().__init__(message)
        self.retryable = retryable
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


class JobCancelledError(RuntimeError):
    """Raised into a job result when the run was cancelled before it finished."""

    def __init__(self, message: str = "Conversion run was cancelled.") -> None:
        super().__init__(message)

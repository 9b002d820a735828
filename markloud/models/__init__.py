"""Typed domain records used across MarkLoud modules."""

from .datatypes import (
    FileJob,
    JobOutcome,
    JobResult,
    ProgressEvent,
    RunReport,
    RunState,
    RunSummary,
)

__all__ = [
    "FileJob",
    "JobOutcome",
    "JobResult",
    "ProgressEvent",
    "RunReport",
    "RunState",
    "RunSummary",
]

"""Filesystem helpers for job discovery and destination writes."""

from .discovery import DEFAULT_PATTERN, destination_for, discover_jobs
from .storage import ensure_parent_dir, write_bytes_atomic

__all__ = [
    "DEFAULT_PATTERN",
    "destination_for",
    "discover_jobs",
    "ensure_parent_dir",
    "write_bytes_atomic",
]

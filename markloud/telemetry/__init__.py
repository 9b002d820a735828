"""Run logging and failure bookkeeping."""

from .logger import DEFAULT_ERROR_LOG_PATH, ErrorLog, RunLogger

__all__ = ["DEFAULT_ERROR_LOG_PATH", "ErrorLog", "RunLogger"]

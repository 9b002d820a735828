"""MarkLoud pipeline package.

This package contains the single-file processor and the run orchestrator that
fans jobs out to worker threads.
"""

from .orchestrator import RunObserver, RunOrchestrator, default_worker_count
from .processor import FileProcessor

__all__ = ["FileProcessor", "RunObserver", "RunOrchestrator", "default_worker_count"]

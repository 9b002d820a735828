"""Top-level package for MarkLoud.

This package converts a directory tree of Markdown documents into narrated
audio files through the OpenAI speech API. The main orchestration entry point
is `RunOrchestrator`.
"""

from .pipeline import RunOrchestrator

__all__ = ["RunOrchestrator", "__version__"]

__version__ = "0.1.0"

"""Text preprocessing and segmentation components.

This package provides deterministic Markdown normalization and chunking
building blocks used before the TTS stage.
"""

from .chunking import DEFAULT_MAX_CHARS, Chunker, chunk_text
from .normalizer import MarkdownNormalizer, normalize

__all__ = [
    "DEFAULT_MAX_CHARS",
    "Chunker",
    "MarkdownNormalizer",
    "chunk_text",
    "normalize",
]

"""Normalized-text-to-chunk segmentation.

Responsibilities:
- Split narration text into chunks bounded by the provider input limit.
- Prefer paragraph boundaries, falling back to sentence boundaries for
  paragraphs that do not fit on their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re

DEFAULT_MAX_CHARS = 4000

_PARAGRAPH_SEPARATOR = "\n\n"
_SENTENCE_SEPARATOR = " "
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


@dataclass(slots=True)
class _GreedyPacker:
    """Accumulate text pieces joined by `separator` while they fit in `limit`."""

    separator: str
    limit: int
    out: list[str]
    _pieces: list[str] = field(default_factory=list)
    _length: int = 0

    def add(self, piece: str) -> None:
        """Append a piece, flushing first when it would overflow the limit."""

        if self._pieces and self._length + len(self.separator) + len(piece) > self.limit:
            self.flush()
        if self._pieces:
            self._length += len(self.separator)
        self._length += len(piece)
        self._pieces.append(piece)

    def flush(self) -> None:
        """Emit the accumulated pieces as one chunk."""

        if self._pieces:
            self.out.append(self.separator.join(self._pieces).strip())
        self._pieces = []
        self._length = 0


class Chunker:
    """Pack paragraphs into bounded chunks, splitting oversized ones by sentence."""

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS) -> None:
        """Initialize chunker limit, substituting the default for non-positive values."""

        self.max_chars = max_chars if max_chars > 0 else DEFAULT_MAX_CHARS

    def split(self, text: str) -> list[str]:
        """Split text into ordered chunks of at most `max_chars` characters.

        Paragraphs (blank-line separated) are packed together while they fit.
        A paragraph longer than the limit is packed sentence by sentence into
        its own chunks; a single sentence longer than the limit cannot be split
        further and is emitted as-is.

        Args:
            text: Normalized plain text with blank-line paragraph separators.

        Returns:
            Non-empty, trimmed chunks in input order.
        """

        chunks: list[str] = []
        paragraphs = _GreedyPacker(_PARAGRAPH_SEPARATOR, self.max_chars, chunks)

        for raw_paragraph in text.split(_PARAGRAPH_SEPARATOR):
            paragraph = raw_paragraph.strip()
            if not paragraph:
                continue
            if len(paragraph) <= self.max_chars:
                paragraphs.add(paragraph)
                continue

            paragraphs.flush()
            sentences = _GreedyPacker(_SENTENCE_SEPARATOR, self.max_chars, chunks)
            for raw_sentence in _SENTENCE_BOUNDARY_RE.split(paragraph):
                sentence = raw_sentence.strip()
                if sentence:
                    sentences.add(sentence)
            sentences.flush()

        paragraphs.flush()
        return [chunk for chunk in chunks if chunk.strip()]


def chunk_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> list[str]:
    """Split text into bounded chunks; see `Chunker.split`."""

    return Chunker(max_chars).split(text)

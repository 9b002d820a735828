"""Markdown-to-speech text normalization.

Responsibilities:
- Strip light Markdown syntax so the synthesized narration does not read
  markup aloud.
- Keep normalization deterministic, pure, and total.

This is a best-effort pass over the constructs listed in `_PASSES`, not a
Markdown grammar: emphasis markers, tables, and HTML survive untouched.
"""

from __future__ import annotations

import re

_CODE_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`([^`]*)`")
_HEADING_RE = re.compile(r"^#+\s*", re.MULTILINE)
_LIST_OR_QUOTE_RE = re.compile(r"^[>-]\s*", re.MULTILINE)
_LINK_RE = re.compile(r"\[((?:[^\]]|\\\])+)\]\([^)]+\)")
_MULTI_NEWLINE_RE = re.compile(r"\n{3,}")

# Order matters: each pass operates on the output of the previous one.
_PASSES: tuple[tuple[re.Pattern[str], str], ...] = (
    (_CODE_FENCE_RE, ""),
    (_INLINE_CODE_RE, r"\1"),
    (_HEADING_RE, ""),
    (_LIST_OR_QUOTE_RE, ""),
    (_LINK_RE, r"\1"),
    (_MULTI_NEWLINE_RE, "\n\n"),
)


def normalize(markdown: str) -> str:
    """Return speech-ready plain text for a Markdown document."""

    text = markdown
    for pattern, replacement in _PASSES:
        text = pattern.sub(replacement, text)
    return text.strip()


class MarkdownNormalizer:
    """Normalize Markdown documents into plain narration text."""

    def normalize(self, markdown: str) -> str:
        """Normalize Markdown text for downstream chunking."""

        return normalize(markdown)

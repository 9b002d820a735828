"""Unit tests for Markdown-to-narration text normalization."""

from __future__ import annotations

import pytest

from markloud.text import MarkdownNormalizer, normalize


def test_normalize_strips_supported_markdown_constructs() -> None:
    """Headings, code, links, and bullets should be reduced to plain narration text."""

    markdown = (
        "# Title\n\n"
        "Some `inline` code and a [link](https://example.com).\n\n"
        "- bullet one\n"
        "- bullet two\n\n"
        "```\ncode fence\n```\n"
    )

    assert normalize(markdown) == (
        "Title\n\nSome inline code and a link.\n\nbullet one\nbullet two"
    )


def test_normalize_removes_multiline_code_fences_entirely() -> None:
    """Fenced code blocks should disappear including their language tag."""

    markdown = "Before.\n\n```python\nprint('hi')\n\nprint('bye')\n```\n\nAfter."

    assert normalize(markdown) == "Before.\n\nAfter."


def test_normalize_strips_blockquote_markers_and_deep_headings() -> None:
    """Quote markers and headings of any level should be removed at line start."""

    markdown = "### Deep heading\n> quoted line\n>another"

    assert normalize(markdown) == "Deep heading\nquoted line\nanother"


def test_normalize_collapses_runs_of_blank_lines() -> None:
    """Three or more newlines should collapse to one paragraph break."""

    assert normalize("one\n\n\n\n\ntwo") == "one\n\ntwo"


def test_normalize_keeps_emphasis_markers() -> None:
    """Emphasis is not part of the stripped construct set."""

    assert normalize("a **bold** and _italic_ word") == "a **bold** and _italic_ word"


@pytest.mark.parametrize("markdown", ["", "   \n\n  ", "```\nonly code\n```"])
def test_normalize_returns_empty_text_for_blank_results(markdown: str) -> None:
    """Inputs with nothing speakable should normalize to an empty string."""

    assert normalize(markdown) == ""


@pytest.mark.parametrize(
    "plain",
    [
        "Plain paragraph.\n\nAnother paragraph with words.",
        "Single line without markup",
    ],
)
def test_normalize_is_idempotent_for_plain_text(plain: str) -> None:
    """Normalizing already-plain text should leave it unchanged."""

    once = normalize(plain)
    assert normalize(once) == once == plain


def test_markdown_normalizer_delegates_to_module_function() -> None:
    """The class wrapper should produce identical output to `normalize`."""

    markdown = "## Heading\n\n[label](http://x.test) text"

    assert MarkdownNormalizer().normalize(markdown) == normalize(markdown)

"""Unit tests for Markdown job discovery and destination mapping."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from markloud.io import destination_for, discover_jobs
from markloud.io import discovery


def _touch(path: Path, content: str = "text") -> Path:
    """Create a file with parent directories."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_discover_jobs_matches_pattern_and_mirrors_destination(tmp_path: Path) -> None:
    """One matching and one non-matching file should yield exactly one mirrored job."""

    root = tmp_path / "docs"
    out_dir = tmp_path / "out"
    source = _touch(root / "guide" / "intro.md")
    _touch(root / "guide" / "notes.txt")

    jobs = discover_jobs(root, out_dir)

    assert len(jobs) == 1
    job = jobs[0]
    assert job.source_path == source
    assert job.relative_path == Path("guide/intro.md")
    assert job.dest_path == out_dir / "guide" / "intro.aac"
    assert job.display_name == "guide/intro.md"


def test_discover_jobs_walks_directories_in_sorted_order(tmp_path: Path) -> None:
    """Traversal order should be deterministic regardless of creation order."""

    root = tmp_path / "docs"
    for relative in ("zeta.md", "b/two.md", "a/one.md", "alpha.md"):
        _touch(root / relative)

    names = [job.display_name for job in discover_jobs(root, tmp_path / "out")]

    assert names == ["alpha.md", "zeta.md", "a/one.md", "b/two.md"]


def test_discover_jobs_never_matches_directories(tmp_path: Path) -> None:
    """A directory whose name matches the pattern should be walked, not matched."""

    root = tmp_path / "docs"
    _touch(root / "chapter.md" / "inner.md")

    jobs = discover_jobs(root, tmp_path / "out")

    assert [job.display_name for job in jobs] == ["chapter.md/inner.md"]


def test_discover_jobs_honors_custom_pattern_and_extension(tmp_path: Path) -> None:
    """Pattern and output extension should both be configurable."""

    root = tmp_path / "docs"
    _touch(root / "a.markdown")
    _touch(root / "b.md")

    jobs = discover_jobs(root, tmp_path / "out", pattern="*.markdown", output_extension="mp3")

    assert [job.dest_path.name for job in jobs] == ["a.mp3"]


def test_discover_jobs_pattern_match_is_case_sensitive(tmp_path: Path) -> None:
    """Uppercase extensions should not match the default lowercase pattern."""

    root = tmp_path / "docs"
    _touch(root / "README.MD")

    assert discover_jobs(root, tmp_path / "out") == []


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_discover_jobs_skips_broken_symlinks(tmp_path: Path) -> None:
    """Matching names that are not regular files should be skipped."""

    root = tmp_path / "docs"
    _touch(root / "real.md")
    (root / "dangling.md").symlink_to(root / "missing-target.md")

    names = [job.display_name for job in discover_jobs(root, tmp_path / "out")]

    assert names == ["real.md"]


def test_discover_jobs_rejects_missing_root(tmp_path: Path) -> None:
    """A missing input root should raise an `OSError` subtype."""

    with pytest.raises(NotADirectoryError):
        discover_jobs(tmp_path / "nope", tmp_path / "out")


def test_destination_for_replaces_only_final_suffix() -> None:
    """Destination mapping should swap the last suffix and keep directories."""

    destination = destination_for(Path("a/b/v1.2.notes.md"), Path("out"), ".aac")

    assert destination == Path("out/a/b/v1.2.notes.aac")


def test_destination_for_maps_bare_dotfile_to_bare_extension() -> None:
    """A file named only `.md` should map to a file named only `.aac`."""

    assert destination_for(Path(".md"), Path("out"), "aac") == Path("out/.aac")
    assert destination_for(Path("sub/.md"), Path("out"), "aac") == Path("out/sub/.aac")


def test_destination_for_keeps_names_without_extension() -> None:
    """A matched name without any dot should only gain the audio extension."""

    assert destination_for(Path("a/README"), Path("out"), "mp3") == Path("out/a/README.mp3")


def test_discover_jobs_maps_dotfile_source(tmp_path: Path) -> None:
    """A discovered `.md` dotfile should get a `.aac` dotfile destination."""

    root = tmp_path / "docs"
    _touch(root / "notes" / ".md")

    jobs = discover_jobs(root, tmp_path / "out")

    assert [job.dest_path for job in jobs] == [tmp_path / "out" / "notes" / ".aac"]


def test_discover_jobs_aborts_on_unreadable_directory(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A directory listing failure mid-walk should raise instead of returning partial jobs."""

    root = tmp_path / "docs"
    _touch(root / "a.md")

    def _walk_with_locked_directory(top, onerror=None, **kwargs):
        _ = kwargs
        yield str(top), ["locked"], ["a.md"]
        onerror(PermissionError(13, "Permission denied", str(Path(top) / "locked")))

    monkeypatch.setattr(discovery.os, "walk", _walk_with_locked_directory)

    with pytest.raises(PermissionError):
        discover_jobs(root, tmp_path / "out")

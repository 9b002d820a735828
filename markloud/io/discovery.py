"""Markdown job discovery over an input directory tree.

Responsibilities:
- Walk the input root recursively in deterministic order.
- Match file base names against a glob pattern.
- Mirror each match into a destination audio path under the output directory.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
import os
from pathlib import Path

from ..models.datatypes import FileJob

DEFAULT_PATTERN = "*.md"


def _raise_walk_error(error: OSError) -> None:
    """Abort traversal on the first directory that cannot be listed."""

    raise error


def destination_for(relative_path: Path, out_dir: Path, output_extension: str) -> Path:
    """Return the destination audio path for a root-relative source path.

    Everything from the last dot of the file name is replaced, so a bare
    dotfile such as `.md` maps to `.aac`.
    """

    stem, dot, _ = relative_path.name.rpartition(".")
    base = stem if dot else relative_path.name
    return out_dir / relative_path.parent / f"{base}.{output_extension.lstrip('.')}"


def discover_jobs(
    root: Path,
    out_dir: Path,
    pattern: str = DEFAULT_PATTERN,
    output_extension: str = "aac",
) -> list[FileJob]:
    """Return one job per regular file under `root` whose name matches `pattern`.

    Directories are visited in sorted order and never matched themselves;
    symlinked directories are not followed.

    Raises:
        OSError: If any directory cannot be traversed. No partial job list is
            returned in that case.
    """

    glob = pattern.strip() or DEFAULT_PATTERN
    root_path = Path(os.path.normpath(Path(root).absolute()))
    out_path = Path(os.path.normpath(out_dir))

    if not root_path.is_dir():
        raise NotADirectoryError(f"Input directory not found: {root}")

    jobs: list[FileJob] = []
    for current, dirnames, filenames in os.walk(root_path, onerror=_raise_walk_error):
        dirnames.sort()
        current_path = Path(current)
        for name in sorted(filenames):
            if not fnmatchcase(name, glob):
                continue
            source_path = current_path / name
            if not source_path.is_file():
                continue
            relative_path = source_path.relative_to(root_path)
            jobs.append(
                FileJob(
                    source_path=source_path,
                    relative_path=relative_path,
                    dest_path=destination_for(relative_path, out_path, output_extension),
                )
            )
    return jobs

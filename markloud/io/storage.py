"""Atomic filesystem writes for destination audio files.

Responsibilities:
- Create destination directories on demand.
- Publish a destination file only once its full payload has been written.
"""

from __future__ import annotations

import os
from pathlib import Path
import tempfile


def ensure_parent_dir(path: Path) -> None:
    """Create the parent directory of `path` when missing."""

    path.parent.mkdir(parents=True, exist_ok=True)


def write_bytes_atomic(path: Path, data: bytes) -> Path:
    """Write `data` to a sibling temp file and rename it over `path`.

    A failed write removes the temp file, so `path` either holds the full
    payload or is left as it was.
    """

    ensure_parent_dir(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path

"""Filesystem helpers shared by the mirror components."""

from __future__ import annotations

import os
from pathlib import Path
from tempfile import TemporaryDirectory


def list_dirs(path: Path) -> list[Path]:
    """
    Return the immediate subdirectories of path, sorted by name.

    Symlinks are followed, so a symlink pointing to a directory (e.g.
    a channel pointing to a release) is listed too. Broken symlinks and
    symlinks to regular files are not.

    Raises:
        OSError: if path cannot be listed.
    """
    return sorted((entry for entry in path.iterdir() if entry.is_dir()), key=lambda p: p.name)


def list_files(path: Path) -> list[str]:
    """Return the names of the regular files inside path, sorted."""
    return sorted(entry.name for entry in path.iterdir() if entry.is_file())


def atomic_write_text(path: Path, content: str) -> None:
    """Write content to path so readers see either the old or the new file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    # Operate inside a temporary directory in the destination directory so
    # `os.replace()` is atomic and we avoid cross-filesystem moves.
    with TemporaryDirectory(dir=path.parent) as tmp_dir:
        tmp_file = Path(tmp_dir) / path.name
        with open(tmp_file, "w") as filep:
            filep.write(content)
            filep.flush()
            os.fsync(filep.fileno())
        os.replace(tmp_file, path)

"""Worklist-based directory walks."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


def iter_named_files(root: Path, filename: str) -> Iterator[Path]:
    """Yield every regular file called ``filename`` below ``root``.

    The walk is depth-first and driven by an explicit stack, so deep trees do
    not consume interpreter recursion. Entries are visited in sorted order to
    keep results stable across filesystems. Symlinked directories are not
    followed.

    Parameters
    ----------
    root
        Directory to search. A missing directory yields nothing.
    filename
        Exact file name to match.

    Yields
    ------
    Path
        Matching file paths.
    """
    if not root.is_dir():
        return
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        with os.scandir(current) as entries:
            ordered = sorted(entries, key=lambda entry: entry.name)
        subdirs: list[Path] = []
        for entry in ordered:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(Path(entry.path))
            elif entry.name == filename and entry.is_file():
                yield Path(entry.path)
        # Reversed so the lexicographically first directory is popped first.
        stack.extend(reversed(subdirs))


__all__ = ["iter_named_files"]

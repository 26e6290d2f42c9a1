"""File I/O utilities with consistent encoding handling."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import msgspec


def read_toml(path: Path) -> Mapping[str, object]:
    """Read and parse a TOML file.

    Parameters
    ----------
    path
        Path to the TOML file.

    Returns
    -------
    Mapping[str, object]
        Parsed TOML content.

    Raises
    ------
    TypeError
        Raised when the TOML content is not a mapping.
    """
    payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise TypeError(msg)
    return payload


def write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write a text file, creating missing parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding=encoding)


def find_in_parents(filename: str, start: Path | None = None) -> Path | None:
    """Walk parents from ``start`` (default: cwd) to find a filename.

    Parameters
    ----------
    filename
        Filename to locate.
    start
        Directory to start from.

    Returns
    -------
    Path | None
        Path to the first matching file in the directory or its parents.
    """
    path = (start or Path.cwd()).absolute()
    while True:
        candidate = path / filename
        if candidate.exists():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


__all__ = ["find_in_parents", "read_toml", "write_text"]

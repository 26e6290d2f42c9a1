"""Tests for directory walking."""

from __future__ import annotations

from pathlib import Path

from tests.test_helpers.workspaces import write_file
from utils.file_walk import iter_named_files


def test_iter_named_files_depth_first_sorted(tmp_path: Path) -> None:
    """Ensure matches are yielded in a stable depth-first order."""
    for relative in ("b/BUILD.lua", "a/z/BUILD.lua", "a/BUILD.lua", "BUILD.lua", "a/other.lua"):
        write_file(tmp_path / relative, "")

    found = [path.relative_to(tmp_path).as_posix() for path in iter_named_files(tmp_path, "BUILD.lua")]

    assert found == ["BUILD.lua", "a/BUILD.lua", "a/z/BUILD.lua", "b/BUILD.lua"]


def test_missing_root_yields_nothing(tmp_path: Path) -> None:
    """Ensure a missing directory is treated as empty."""
    assert list(iter_named_files(tmp_path / "missing", "BUILD.lua")) == []


def test_directories_with_matching_name_are_skipped(tmp_path: Path) -> None:
    """Ensure only regular files match."""
    (tmp_path / "INIT.lua").mkdir()
    write_file(tmp_path / "INIT.lua" / "INIT.lua", "")
    found = list(iter_named_files(tmp_path, "INIT.lua"))
    assert found == [tmp_path / "INIT.lua" / "INIT.lua"]


def test_symlinked_directories_are_not_followed(tmp_path: Path) -> None:
    """Ensure symlink loops cannot trap the walk."""
    write_file(tmp_path / "real" / "BUILD.lua", "")
    (tmp_path / "real" / "loop").symlink_to(tmp_path / "real", target_is_directory=True)
    assert list(iter_named_files(tmp_path, "BUILD.lua")) == [tmp_path / "real" / "BUILD.lua"]

"""Tests for the git module backend against real repositories."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import FetchFailedError, NotAModuleError, VcsCommandFailedError
from tests.test_helpers.workspaces import (
    GIT_AVAILABLE,
    git,
    init_repo_with_commits,
    make_module_dir,
    manifest,
)
from workspace.git_module import GitModule
from workspace.module import open_module, open_or_fetch_module
from workspace.resolver import sync_workspace

pytestmark = pytest.mark.skipif(not GIT_AVAILABLE, reason="git executable not available")

_LIB_MANIFEST = {"MODULE.lua": manifest("lib")}


@pytest.fixture
def remote(tmp_path: Path) -> tuple[Path, list[str]]:
    """Provide a three-commit repository tagged v1 and v2.

    Returns
    -------
    tuple[Path, list[str]]
        Repository path and commit hashes, oldest first.
    """
    path = tmp_path / "remote"
    commits = init_repo_with_commits(path, count=3, files=_LIB_MANIFEST)
    git(path, "tag", "v1", commits[0])
    git(path, "tag", "v2", commits[1])
    return path, commits


def test_clone_and_head(tmp_path: Path, remote: tuple[Path, list[str]]) -> None:
    """Ensure a missing checkout is cloned and reports the remote head."""
    url, commits = remote
    module = GitModule.open_or_fetch(tmp_path / "DEPS" / "lib", str(url), "")
    assert module.name == "lib"
    assert module.head() == commits[-1]


def test_open_existing_checkout(tmp_path: Path, remote: tuple[Path, list[str]]) -> None:
    """Ensure an existing checkout is opened instead of cloned again."""
    url, _ = remote
    target = tmp_path / "DEPS" / "lib"
    GitModule.open_or_fetch(target, str(url), "")
    again = open_or_fetch_module(target, "https://unreachable.invalid/lib.git", "", "")
    assert isinstance(again, GitModule)
    assert open_module(target).disk_path == target


def test_clone_failure(tmp_path: Path) -> None:
    """Ensure a failing clone raises a fetch error."""
    with pytest.raises(FetchFailedError):
        GitModule.open_or_fetch(tmp_path / "lib", str(tmp_path / "nope"), "")


def test_checkout_and_ancestry(tmp_path: Path, remote: tuple[Path, list[str]]) -> None:
    """Ensure checkout moves HEAD and ancestry follows history."""
    url, commits = remote
    module = GitModule.open_or_fetch(tmp_path / "lib", str(url), "")
    module.fetch()
    module.checkout("v1")
    assert module.head() == commits[0]
    assert module.is_ancestor(commits[0], "v2")
    assert not module.is_ancestor(commits[2], "v2")


def test_unknown_revision_fails(tmp_path: Path, remote: tuple[Path, list[str]]) -> None:
    """Ensure git errors surface as VCS command failures."""
    url, _ = remote
    module = GitModule.open_or_fetch(tmp_path / "lib", str(url), "")
    with pytest.raises(VcsCommandFailedError):
        module.checkout("does-not-exist")
    with pytest.raises(VcsCommandFailedError):
        module.is_ancestor("0" * 40, "v1")


def test_open_without_marker(tmp_path: Path) -> None:
    """Ensure a plain directory is not a module."""
    with pytest.raises(NotAModuleError):
        GitModule.open(tmp_path)
    with pytest.raises(NotAModuleError):
        open_module(tmp_path)


def test_unknown_module_type(tmp_path: Path) -> None:
    """Ensure URLs of unknown type are rejected."""
    with pytest.raises(NotAModuleError, match="unknown module type"):
        open_or_fetch_module(tmp_path / "lib", "https://example.com/lib.tar", "", "")


def test_sync_workspace_pins_versions(tmp_path: Path, remote: tuple[Path, list[str]]) -> None:
    """Ensure syncing clones dependencies and pins them to their version."""
    url, commits = remote
    root = make_module_dir(
        tmp_path / "ws",
        manifest("app", f"lib = {{ url = {str(url)!r}, version = 'v1', type = 'git' }}"),
    )

    result = sync_workspace(root)

    assert result.pins == {"lib": commits[0]}
    assert (root / "DEPS" / "lib" / "MODULE.lua").is_file()
    assert sync_workspace(root).pins == result.pins


def test_sync_workspace_applies_pin(tmp_path: Path, remote: tuple[Path, list[str]]) -> None:
    """Ensure a declared hash is checked out when reachable from the version."""
    url, commits = remote
    root = make_module_dir(
        tmp_path / "ws",
        manifest(
            "app",
            f"lib = {{ url = {str(url)!r}, version = 'v2', hash = {commits[0][:10]!r}, type = 'git' }}",
        ),
    )

    result = sync_workspace(root, strict=True)

    assert result.pins == {"lib": commits[0]}

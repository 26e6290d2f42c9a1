"""Tests for module manifest loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import ManifestParseError, ManifestValidationError
from tests.test_helpers.workspaces import write_file
from workspace.module_file import DependencyDefinition, load_module_file


def _load(tmp_path: Path, source: str):
    return load_module_file(write_file(tmp_path / "MODULE.lua", source))


def test_loads_dependencies_sorted_by_name(tmp_path: Path) -> None:
    """Ensure dependencies decode into a name-sorted mapping."""
    modfile = _load(
        tmp_path,
        """
        return {
            name = "app",
            version = 1,
            deps = {
                zlib = { url = "https://example.com/zlib.git", version = "v1.3" },
                fmt = { url = "https://example.com/fmt.git", version = "main", hash = "abc123" },
            },
            flags = { opt = "2" },
        }
        """,
    )
    assert modfile.name == "app"
    assert list(modfile.deps) == ["fmt", "zlib"]
    assert modfile.deps["fmt"].pinned
    assert not modfile.deps["zlib"].pinned
    assert modfile.flags == {"opt": "2"}


def test_deps_default_to_empty(tmp_path: Path) -> None:
    """Ensure a manifest without deps is valid."""
    modfile = _load(tmp_path, 'return { name = "leaf", version = 1 }')
    assert modfile.deps == {}
    assert modfile.flags == {}


def test_unsupported_version_is_rejected(tmp_path: Path) -> None:
    """Ensure only schema version 1 is accepted."""
    with pytest.raises(ManifestValidationError, match="version: 2"):
        _load(tmp_path, 'return { name = "app", version = 2 }')


def test_missing_name_is_rejected(tmp_path: Path) -> None:
    """Ensure a module must be named."""
    with pytest.raises(ManifestValidationError, match="no module name"):
        _load(tmp_path, "return { version = 1 }")


def test_missing_version_is_a_parse_error(tmp_path: Path) -> None:
    """Ensure the schema version is required."""
    with pytest.raises(ManifestParseError):
        _load(tmp_path, 'return { name = "app" }')


def test_syntax_error_is_a_parse_error(tmp_path: Path) -> None:
    """Ensure malformed Lua surfaces as a manifest parse error."""
    with pytest.raises(ManifestParseError) as excinfo:
        _load(tmp_path, "return { name = ")
    assert excinfo.value.path.endswith("MODULE.lua")


def test_manifest_cannot_use_standard_library(tmp_path: Path) -> None:
    """Ensure manifests run without the standard library."""
    with pytest.raises(ManifestParseError):
        _load(tmp_path, 'return { name = string.format("%s", "app"), version = 1 }')


def test_manifest_cannot_use_string_methods(tmp_path: Path) -> None:
    """Ensure the string library is unreachable through method syntax."""
    with pytest.raises(ManifestParseError, match="index a string value"):
        _load(tmp_path, 'return { name = ("%s"):format("app"), version = 1 }')


def test_non_table_result_is_a_parse_error(tmp_path: Path) -> None:
    """Ensure a manifest must return a table."""
    with pytest.raises(ManifestParseError):
        _load(tmp_path, 'return "app"')


def test_wrong_dependency_field_type_is_a_parse_error(tmp_path: Path) -> None:
    """Ensure dependency fields are type checked."""
    with pytest.raises(ManifestParseError, match="found type: table"):
        _load(tmp_path, 'return { name = "app", version = 1, deps = { x = { url = {} } } }')


def test_dependency_type_inference() -> None:
    """Ensure the backend is inferred from the URL when not declared."""
    assert DependencyDefinition(url="https://example.com/a.git").resolved_type == "git"
    assert DependencyDefinition(url="https://example.com/a", type="git").resolved_type == "git"
    assert DependencyDefinition(url="https://example.com/a.tar").resolved_type is None


def test_target_revision_prefers_pin() -> None:
    """Ensure the declared hash wins over the version ref."""
    assert DependencyDefinition(version="main", hash="abc").target_revision == "abc"
    assert DependencyDefinition(version="main").target_revision == "main"

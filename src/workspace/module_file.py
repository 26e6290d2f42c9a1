"""Typed module manifests (``MODULE.lua``)."""

from __future__ import annotations

import logging
from pathlib import Path

import msgspec

from core.errors import (
    ManifestParseError,
    ManifestValidationError,
    ScriptExecutionError,
    TypeMismatchError,
)
from scripting.codec import ScriptValueCodec
from scripting.runtime import ScriptRuntime
from serde_msgspec import StructBaseCompat
from workspace.module import infer_module_type

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})


class DependencyDefinition(StructBaseCompat, frozen=True):
    """Source, version and optional pin of one dependency."""

    url: str = ""
    version: str = ""
    hash: str = ""
    type: str = ""

    @property
    def pinned(self) -> bool:
        """Return whether a content hash is declared.

        Returns
        -------
        bool
            True when ``hash`` is non-empty.
        """
        return bool(self.hash)

    @property
    def resolved_type(self) -> str | None:
        """Return the backend tag, inferred from the URL when unset.

        Returns
        -------
        str | None
            Backend tag or ``None`` when unknown.
        """
        return infer_module_type(self.url, self.type)

    @property
    def target_revision(self) -> str:
        """Return the revision to check out: the pin, else the version ref.

        Returns
        -------
        str
            Revision string.
        """
        return self.hash or self.version


DependencyMap = dict[str, DependencyDefinition]
FlagMap = dict[str, str]


class ModuleFile(StructBaseCompat, frozen=True):
    """Decoded module manifest."""

    name: str
    version: int
    deps: DependencyMap = msgspec.field(default_factory=dict)
    flags: FlagMap = msgspec.field(default_factory=dict)


def validate_module_file(modfile: ModuleFile) -> None:
    """Check schema rules that decoding cannot express.

    Raises
    ------
    ManifestValidationError
        Raised for an empty name or an unsupported schema version.
    """
    if not modfile.name:
        msg = "Module file has no module name"
        raise ManifestValidationError(msg)
    if modfile.version not in SUPPORTED_SCHEMA_VERSIONS:
        msg = f"Unsupported module file version: {modfile.version}"
        raise ManifestValidationError(msg)


def load_module_file(path: Path) -> ModuleFile:
    """Evaluate and decode a module manifest.

    The manifest runs in a sandboxed Lua runtime with no standard library
    and must return a table.

    Parameters
    ----------
    path
        Path to ``MODULE.lua``.

    Returns
    -------
    ModuleFile
        Validated manifest.

    Raises
    ------
    ManifestParseError
        Raised when the script fails or returns a malformed value.
    """
    runtime = ScriptRuntime.sandboxed()
    try:
        value = runtime.exec_file(Path(path))
    except ScriptExecutionError as exc:
        raise ManifestParseError(str(path), exc.diagnostic) from exc
    if isinstance(value, tuple):
        value = value[0] if value else None
    try:
        modfile = ScriptValueCodec().decode(value, ModuleFile)
    except TypeMismatchError as exc:
        raise ManifestParseError(str(path), str(exc)) from exc
    validate_module_file(modfile)
    logger.debug("Loaded module file %s for module %s", path, modfile.name)
    return modfile


__all__ = [
    "SUPPORTED_SCHEMA_VERSIONS",
    "DependencyDefinition",
    "DependencyMap",
    "FlagMap",
    "ModuleFile",
    "load_module_file",
    "validate_module_file",
]

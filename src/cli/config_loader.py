"""Config loading and normalization helpers for the CLI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import msgspec

from cli.config_models import RootConfigSpec
from obs.logging import LOG_LEVELS
from serde_msgspec import validation_error_payload
from utils.file_io import find_in_parents, read_toml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "yabt.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"
TOOL_KEY = "yabt"


def load_effective_config(
    config_file: str | None = None,
    *,
    start: Path | None = None,
) -> RootConfigSpec:
    """Load config from ``yabt.toml`` / ``pyproject.toml`` or an explicit file.

    ``yabt.toml`` wins over ``[tool.yabt]`` when both are found.

    Parameters
    ----------
    config_file
        Optional explicit config file path.
    start
        Directory the parent search starts from (default: cwd).

    Returns
    -------
    RootConfigSpec
        Decoded configuration; empty when no file is found.

    Raises
    ------
    ValueError
        Raised when an explicit config file does not exist.
    """
    if config_file:
        path = Path(config_file)
        if not path.exists():
            msg = f"Config file not found: {config_file!r}."
            raise ValueError(msg)
        raw, location = _resolve_explicit_payload(path)
        return _decode_root_config(raw, location=location)

    yabt_path = find_in_parents(CONFIG_FILE_NAME, start)
    if yabt_path is not None:
        logger.debug("Using config file %s", yabt_path)
        return _decode_root_config(read_toml(yabt_path), location=str(yabt_path))

    pyproject_path = find_in_parents(PYPROJECT_FILE_NAME, start)
    if pyproject_path is not None:
        nested = _extract_tool_config(read_toml(pyproject_path))
        if nested is not None:
            logger.debug("Using [tool.%s] from %s", TOOL_KEY, pyproject_path)
            return _decode_root_config(nested, location=f"{pyproject_path}:tool.{TOOL_KEY}")

    return RootConfigSpec()


def _decode_root_config(raw: Mapping[str, object], *, location: str) -> RootConfigSpec:
    try:
        config = msgspec.convert(dict(raw), type=RootConfigSpec, strict=True)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise ValueError(msg) from exc
    _validate_root_config(config, location=location)
    return config


def _validate_root_config(config: RootConfigSpec, *, location: str) -> None:
    if config.log_level is not None and config.log_level.upper() not in LOG_LEVELS:
        msg = f"Config validation failed for {location}: unsupported log_level {config.log_level!r}."
        raise ValueError(msg)
    threads = config.build.threads if config.build is not None else None
    if threads is not None and threads < 1:
        msg = f"Config validation failed for {location}: build.threads must be positive."
        raise ValueError(msg)


def _resolve_explicit_payload(path: Path) -> tuple[Mapping[str, object], str]:
    raw = read_toml(path)
    if path.name == PYPROJECT_FILE_NAME:
        nested = _extract_tool_config(raw)
        if nested is None:
            msg = f"Config validation failed for {path}: missing [tool.{TOOL_KEY}] section."
            raise ValueError(msg)
        return nested, f"{path}:tool.{TOOL_KEY}"
    return raw, str(path)


def _extract_tool_config(raw: Mapping[str, object]) -> dict[str, object] | None:
    tool_section = raw.get("tool")
    if not isinstance(tool_section, dict):
        return None
    nested = tool_section.get(TOOL_KEY)
    if not isinstance(nested, dict):
        return None
    return nested


__all__ = ["CONFIG_FILE_NAME", "load_effective_config"]

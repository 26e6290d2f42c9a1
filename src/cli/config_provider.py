"""Shared configuration resolution for the CLI and Cyclopts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import cast

from cyclopts.config import Dict

from cli.config_loader import load_effective_config
from cli.config_models import RootConfigSpec
from serde_msgspec import to_builtins


@dataclass(frozen=True)
class ConfigResolution:
    """Resolved configuration plus per-command CLI defaults."""

    config: RootConfigSpec
    command_defaults: dict[str, dict[str, object]]

    @property
    def log_level(self) -> str | None:
        """Return the configured log level.

        Returns
        -------
        str | None
            Level name, or ``None`` when unset.
        """
        return self.config.log_level

    @property
    def no_color(self) -> bool:
        """Return whether coloured output is disabled by config.

        Returns
        -------
        bool
            True when ``no_color`` is set.
        """
        return bool(self.config.no_color)


def resolve_config(config_file: str | None = None) -> ConfigResolution:
    """Resolve config contents from disk.

    Returns
    -------
    ConfigResolution
        Resolved configuration and command defaults.
    """
    config = load_effective_config(config_file)
    return ConfigResolution(config=config, command_defaults=command_defaults(config))


def command_defaults(config: RootConfigSpec) -> dict[str, dict[str, object]]:
    """Map config sections onto command option names.

    Returns
    -------
    dict[str, dict[str, object]]
        Command name to ``{option-name: value}``.
    """
    defaults: dict[str, dict[str, object]] = {}
    if config.build is not None:
        build = _hyphenate(cast("dict[str, object]", to_builtins(config.build)))
        defaults["build"] = build
        if "build-dir" in build:
            defaults["clean"] = {"build-dir": build["build-dir"]}
            defaults["list"] = {"build-dir": build["build-dir"]}
    if config.sync is not None:
        defaults["sync"] = _hyphenate(cast("dict[str, object]", to_builtins(config.sync)))
    return defaults


def _hyphenate(payload: dict[str, object]) -> dict[str, object]:
    return {key.replace("_", "-"): value for key, value in payload.items() if value is not None}


def build_cyclopts_config(resolution: ConfigResolution) -> list[Dict]:
    """Build Cyclopts config providers from resolved config contents.

    Returns
    -------
    list[Dict]
        Cyclopts config providers for CLI defaults.
    """
    return [
        Dict(
            dict(resolution.command_defaults),
            allow_unknown=True,
            use_commands_as_keys=True,
            source="yabt",
        ),
    ]


__all__ = [
    "ConfigResolution",
    "build_cyclopts_config",
    "command_defaults",
    "resolve_config",
]

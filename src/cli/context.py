"""Run context for CLI command injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cli.config_models import RootConfigSpec


@dataclass(frozen=True)
class RunContext:
    """Injected run context for CLI commands.

    Parameters
    ----------
    log_level
        Logging level applied to the invocation.
    color
        Whether rich output is enabled.
    config
        Resolved configuration.
    cwd
        Directory the workspace search starts from.
    """

    log_level: str
    color: bool = True
    config: RootConfigSpec = field(default_factory=RootConfigSpec)
    cwd: Path = field(default_factory=Path.cwd)


__all__ = ["RunContext"]

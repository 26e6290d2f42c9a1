"""Main application setup for the yabt CLI."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Annotated, Literal

from cyclopts import App, Parameter

from cli.commands.version import get_version
from cli.config_provider import build_cyclopts_config, resolve_config
from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.groups import admin_group, session_group
from cli.invoke import invoke_command
from cli.result_action import cli_result_action
from obs.logging import configure_logging, parse_log_level

logger = logging.getLogger(__name__)

DEFAULT_LOG_LEVEL = "INFO"

_HELP_EPILOGUE = """
Examples:
  yabt sync                       Fetch and pin every dependency
  yabt sync --strict              Refuse dependencies without a hash
  yabt build --threads 8          Emit build.ninja and run Ninja
  yabt list '.*\\.o'               List targets matching a regular expression
  yabt clean --deps               Remove the build and DEPS directories

Environment Variables:
  YABT_LOG_LEVEL   Default log level (ERROR, WARNING, INFO, DEBUG, VERBOSE)

Configuration:
  yabt.toml or [tool.yabt] in pyproject.toml, searched from the current
  directory upwards.
"""

app = App(
    name="yabt",
    help="yabt - Yet Another Build Tool: Lua build descriptions, Ninja execution.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version,
    version_flags=["--version", "-V"],
    default_parameter=Parameter(show_default=True),
    result_action=cli_result_action,
    exit_on_error=True,
    print_error=True,
    help_on_error=True,
)

app.meta.group_parameters = session_group


@dataclass(frozen=True)
class SessionOptions:
    """Session-level configuration parameters."""

    config_file: Annotated[
        str | None,
        Parameter(
            name="--config",
            help="Path to configuration file (overrides default search).",
            group=session_group,
        ),
    ] = None
    log_level: Annotated[
        Literal["ERROR", "WARNING", "INFO", "DEBUG", "VERBOSE"] | None,
        Parameter(
            name="--log-level",
            help="Logging verbosity level.",
            env_var="YABT_LOG_LEVEL",
            group=session_group,
        ),
    ] = None
    verbose: Annotated[
        bool,
        Parameter(
            name=["--verbose", "-v"],
            negative="",
            help="Shorthand for --log-level VERBOSE.",
            group=session_group,
        ),
    ] = False
    no_color: Annotated[
        bool,
        Parameter(
            name="--no-color",
            negative="",
            help="Disable coloured log output.",
            group=session_group,
        ),
    ] = False


_DEFAULT_SESSION_OPTIONS = SessionOptions()


def _effective_log_level(session: SessionOptions, configured: str | None) -> str:
    if session.verbose:
        return "VERBOSE"
    return (session.log_level or configured or DEFAULT_LOG_LEVEL).upper()


@app.meta.default
def meta_launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    session: Annotated[SessionOptions, Parameter(name="*")] = _DEFAULT_SESSION_OPTIONS,
) -> int:
    """Meta launcher for logging setup, config selection and context injection.

    Returns
    -------
    int
        Exit status code from command execution.
    """
    try:
        resolution = resolve_config(session.config_file)
    except (TypeError, ValueError) as exc:
        configure_logging(DEFAULT_LOG_LEVEL, color=not session.no_color)
        logger.error("%s", exc)
        return ExitCode.CONFIG_ERROR

    log_level = _effective_log_level(session, resolution.log_level)
    color = not (session.no_color or resolution.no_color)
    configure_logging(parse_log_level(log_level), color=color)
    app.config = build_cyclopts_config(resolution)

    run_context = RunContext(log_level=log_level, color=color, config=resolution.config)
    exit_code, event = invoke_command(app, list(tokens), run_context=run_context)
    if event.error_stage is not None:
        logger.debug(
            "Command %s failed during %s with %s (exit %d)",
            event.command,
            event.error_stage,
            event.error_class,
            exit_code,
        )
    logger.debug(
        "Command %s finished with %d (parse %.1fms, exec %.1fms)",
        event.command,
        exit_code,
        event.parse_ms,
        event.exec_ms,
    )
    return exit_code


# Lazy-loaded commands
app.command("cli.commands.build:build_command", name="build")
app.command("cli.commands.sync:sync_command", name="sync")
app.command("cli.commands.clean:clean_command", name="clean")
app.command("cli.commands.list:list_command", name="list")
app.command("cli.commands.help:help_command", name="help", group=admin_group)
app.command("cli.commands.version:version_command", name="version", group=admin_group)


def main() -> None:
    """Run the yabt CLI."""
    sys.exit(app.meta())


__all__ = ["app", "main", "meta_launcher"]

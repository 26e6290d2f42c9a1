"""Console logging setup with a verbose level and nested indentation."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, cast

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from collections.abc import Iterator

    class _IndentedRecord(logging.LogRecord):
        indent: str


VERBOSE = 5
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_LEVELS: dict[str, int] = {
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
}

PLAIN_LOG_FORMAT = "%(levelname)s: %(indent)s%(message)s"
_INDENT_SPACES = 2

_indent_level: ContextVar[int] = ContextVar("yabt_log_indent", default=0)


class IndentFilter(logging.Filter):
    """Attach the current nesting prefix to log records."""

    @staticmethod
    def filter(record: logging.LogRecord) -> bool:
        """Inject the ``indent`` attribute.

        Returns
        -------
        bool
            True to keep the log record.
        """
        indented = cast("_IndentedRecord", record)
        indented.indent = " " * (_INDENT_SPACES * _indent_level.get())
        return True


class _RichIndentHandler(RichHandler):
    def render_message(self, record: logging.LogRecord, message: str) -> object:
        prefix = getattr(record, "indent", "")
        return super().render_message(record, f"{prefix}{message}")


@contextmanager
def log_indent() -> Iterator[None]:
    """Indent log lines emitted inside the block by one level.

    Yields
    ------
    None
        Control returns to the caller with indentation applied.
    """
    token = _indent_level.set(_indent_level.get() + 1)
    try:
        yield
    finally:
        _indent_level.reset(token)


def parse_log_level(name: str) -> int:
    """Map a level name to its numeric logging level.

    Parameters
    ----------
    name
        One of ERROR, WARNING, INFO, DEBUG, VERBOSE (case-insensitive).

    Returns
    -------
    int
        Numeric logging level.

    Raises
    ------
    ValueError
        Raised when the name is not a supported level.
    """
    level = LOG_LEVELS.get(name.upper())
    if level is None:
        choices = ", ".join(f'"{key}"' for key in LOG_LEVELS)
        msg = f"Unsupported log level {name!r}. Expected one of: {choices}."
        raise ValueError(msg)
    return level


def configure_logging(level: int | str, *, color: bool = True) -> None:
    """Install the yabt console handler on the root logger.

    Parameters
    ----------
    level
        Numeric level or level name.
    color
        Use the rich handler; otherwise emit plain ``LEVEL: message`` lines.
    """
    numeric = parse_log_level(level) if isinstance(level, str) else level
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_yabt_handler", False):
            root.removeHandler(existing)
    handler: logging.Handler
    if color:
        handler = _RichIndentHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(PLAIN_LOG_FORMAT))
    handler.addFilter(IndentFilter())
    handler._yabt_handler = True  # type: ignore[attr-defined]  # noqa: SLF001
    root.addHandler(handler)
    root.setLevel(numeric)


def log_verbose(logger: logging.Logger, msg: str, *args: object) -> None:
    """Log ``msg`` at the VERBOSE level."""
    logger.log(VERBOSE, msg, *args)


__all__ = [
    "LOG_LEVELS",
    "VERBOSE",
    "IndentFilter",
    "configure_logging",
    "log_indent",
    "log_verbose",
    "parse_log_level",
]

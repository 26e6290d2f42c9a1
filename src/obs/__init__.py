"""Observation utilities: logging setup and indentation-aware log output."""

from __future__ import annotations

from obs.logging import VERBOSE, configure_logging, log_indent, log_verbose

__all__ = ["VERBOSE", "configure_logging", "log_indent", "log_verbose"]

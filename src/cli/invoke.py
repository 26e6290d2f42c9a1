"""Command dispatch with tracing, timing and error classification."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cyclopts.exceptions import CycloptsError
from opentelemetry.trace import Status, StatusCode

from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.result_action import cli_result_action
from core.errors import YabtError
from obs.tracing import (
    SCOPE_CLI,
    get_tracer,
    normalize_attributes,
    record_exception,
    set_span_attributes,
)

if TYPE_CHECKING:
    from cyclopts import App
    from opentelemetry.trace import Span

_LOGGER = logging.getLogger(__name__)
tracer = get_tracer(SCOPE_CLI)


@dataclass(frozen=True)
class CliInvokeEvent:
    """Structured record of one CLI invocation."""

    ok: bool
    command: str | None
    parse_ms: float
    exec_ms: float
    exit_code: int
    error_class: str | None = None
    error_stage: str | None = None
    error_message: str | None = None


def _command_name_from_tokens(tokens: list[str]) -> str:
    if not tokens:
        return "<default>"
    return tokens[0]


def _classify_error_stage(exc: CycloptsError) -> str:
    """Classify Cyclopts errors into CLI pipeline stages.

    Returns
    -------
    str
        Error stage label.
    """
    name = exc.__class__.__name__
    if name == "UnknownCommandError":
        return "command_resolve"
    if name in {"UnknownOptionError", "MissingArgumentError", "RepeatArgumentError"}:
        return "binding"
    if name == "CoercionError":
        return "coercion"
    if name == "ValidationError":
        return "validation"
    return "unknown"


def _event_attributes(event: CliInvokeEvent) -> dict[str, object]:
    return {
        "yabt.command": event.command,
        "yabt.ok": event.ok,
        "yabt.exit_code": event.exit_code,
        "yabt.parse_ms": event.parse_ms,
        "yabt.exec_ms": event.exec_ms,
        "yabt.error.class": event.error_class,
        "yabt.error.stage": event.error_stage,
        "yabt.error.message": event.error_message,
    }


def invoke_command(
    app: App,
    tokens: list[str],
    *,
    run_context: RunContext | None,
) -> tuple[int, CliInvokeEvent]:
    """Parse ``tokens``, run the selected command and classify the outcome.

    The invocation runs inside a ``yabt.cli.invocation`` span with child
    spans for parsing and execution; the returned event is attached to the
    root span as attributes. Domain failures are logged and followed by the
    command's help; the process exit code is taken from the error.

    Parameters
    ----------
    app
        CLI app instance.
    tokens
        Command tokens to execute.
    run_context
        Context injected into commands that declare a ``run_context``
        parameter.

    Returns
    -------
    tuple[int, CliInvokeEvent]
        Exit code and the invocation record.
    """
    t0 = time.perf_counter()
    command_name = _command_name_from_tokens(tokens)
    with tracer.start_as_current_span(
        "yabt.cli.invocation",
        attributes=normalize_attributes(
            {
                "yabt.command": command_name,
                "yabt.tokens": len(tokens),
                "yabt.log_level": run_context.log_level if run_context else None,
            }
        ),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        exit_code, event = _invoke(app, tokens, run_context=run_context, t0=t0, span=span)
        set_span_attributes(span, _event_attributes(event))
        if not event.ok and event.error_class is None:
            span.set_status(Status(StatusCode.ERROR, f"exit code {exit_code}"))
    return exit_code, event


def _invoke(
    app: App,
    tokens: list[str],
    *,
    run_context: RunContext | None,
    t0: float,
    span: Span,
) -> tuple[int, CliInvokeEvent]:
    command_name = _command_name_from_tokens(tokens)
    try:
        with tracer.start_as_current_span("yabt.cli.parse"):
            command, bound, ignored = app.parse_args(
                tokens, exit_on_error=False, print_error=True
            )
    except CycloptsError as exc:
        parse_ms = (time.perf_counter() - t0) * 1000.0
        exit_code = int(ExitCode.from_exception(exc))
        record_exception(span, exc)
        return exit_code, CliInvokeEvent(
            ok=False,
            command=command_name,
            parse_ms=parse_ms,
            exec_ms=0.0,
            exit_code=exit_code,
            error_class=f"cyclopts.{exc.__class__.__name__}",
            error_stage=_classify_error_stage(exc),
            error_message=str(exc),
        )
    parse_ms = (time.perf_counter() - t0) * 1000.0

    for name, hint in ignored.items():
        if hint is RunContext or name == "run_context":
            bound.arguments[name] = run_context

    t1 = time.perf_counter()
    try:
        with tracer.start_as_current_span(
            "yabt.cli.command",
            attributes={"yabt.command": getattr(command, "__qualname__", command_name)},
        ):
            result = command(*bound.args, **bound.kwargs)
    except (YabtError, ValueError) as exc:
        exec_ms = (time.perf_counter() - t1) * 1000.0
        exit_code = int(ExitCode.from_exception(exc))
        record_exception(span, exc)
        _LOGGER.error("%s", exc)
        if app.help_on_error:
            app.help_print(tokens)
        return exit_code, CliInvokeEvent(
            ok=False,
            command=command_name,
            parse_ms=parse_ms,
            exec_ms=exec_ms,
            exit_code=exit_code,
            error_class=f"{exc.__class__.__module__}.{exc.__class__.__name__}",
            error_stage="execution",
            error_message=str(exc),
        )
    exec_ms = (time.perf_counter() - t1) * 1000.0
    exit_code = cli_result_action(result)
    return exit_code, CliInvokeEvent(
        ok=exit_code == ExitCode.SUCCESS,
        command=command_name,
        parse_ms=parse_ms,
        exec_ms=exec_ms,
        exit_code=exit_code,
    )


__all__ = ["CliInvokeEvent", "invoke_command", "tracer"]

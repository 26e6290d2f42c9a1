"""Tracing helpers for yabt instrumentation.

Only the OpenTelemetry API is used here. Without a configured SDK every
tracer is a no-op, so spans cost nothing unless an embedding process
installs a tracer provider.
"""

from __future__ import annotations

import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode
from opentelemetry.util.types import AttributeValue

SCOPE_CLI = "yabt.cli"
SCOPE_WORKSPACE = "yabt.workspace"
SCOPE_BUILD = "yabt.build"


def get_tracer(scope_name: str) -> trace.Tracer:
    """Return a tracer for the given instrumentation scope.

    Returns
    -------
    opentelemetry.trace.Tracer
        Tracer bound to the requested scope.
    """
    return trace.get_tracer(scope_name)


def normalize_attributes(attrs: Mapping[str, object] | None) -> dict[str, AttributeValue]:
    """Drop ``None`` values and stringify anything that is not a scalar.

    Returns
    -------
    dict[str, AttributeValue]
        Attributes accepted by ``Span.set_attribute``.
    """
    normalized: dict[str, AttributeValue] = {}
    for key, value in (attrs or {}).items():
        if value is None:
            continue
        if isinstance(value, (str, bool, int, float)):
            normalized[key] = value
        else:
            normalized[key] = str(value)
    return normalized


def set_span_attributes(span: Span, attrs: Mapping[str, object] | None) -> None:
    """Attach normalized attributes to a span."""
    for key, value in normalize_attributes(attrs).items():
        span.set_attribute(key, value)


def record_exception(span: Span, exc: BaseException) -> None:
    """Record an exception on a span and mark it as error."""
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


@contextmanager
def stage_span(
    name: str,
    *,
    stage: str,
    scope_name: str,
    attributes: Mapping[str, object] | None = None,
) -> Iterator[Span]:
    """Run a pipeline stage inside a span.

    The span records the stage name, its status and its duration; an
    exception escaping the block is recorded and re-raised.

    Parameters
    ----------
    name
        Span name.
    stage
        Stage label stored as ``yabt.stage``.
    scope_name
        Instrumentation scope name.
    attributes
        Optional span attributes.

    Yields
    ------
    Span
        The started span.
    """
    base_attrs: dict[str, object] = {"yabt.stage": stage}
    if attributes:
        base_attrs.update(attributes)
    start = time.monotonic()
    status = "ok"
    tracer = get_tracer(scope_name)
    with tracer.start_as_current_span(
        name,
        attributes=normalize_attributes(base_attrs),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            status = "error"
            record_exception(span, exc)
            raise
        finally:
            set_span_attributes(
                span,
                {"duration_s": time.monotonic() - start, "status": status},
            )


__all__ = [
    "SCOPE_BUILD",
    "SCOPE_CLI",
    "SCOPE_WORKSPACE",
    "get_tracer",
    "normalize_attributes",
    "record_exception",
    "set_span_attributes",
    "stage_span",
]

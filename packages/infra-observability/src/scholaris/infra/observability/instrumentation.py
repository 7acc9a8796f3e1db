"""Manual instrumentation utilities for OpenTelemetry tracing.

- :func:`traced_operation` wraps a store or identity-provider call in a
  span named after the operation.
- :func:`start_span` opens a span around a block, used for the phases of
  the provisioning workflow.

Both mark the span as failed when an exception escapes. Task cancellation
(``asyncio.CancelledError``) is not an ``Exception`` and leaves the span
status unset, so superseded availability lookups never show up as errors.

Usage:
    @traced_operation("tenant_store.subdomain_exists", db_system="postgresql")
    async def subdomain_exists(self, subdomain: str) -> bool: ...

    with start_span("provisioning.identity", {"academy.subdomain": "acme"}):
        ...
"""

from __future__ import annotations

import inspect
from contextlib import contextmanager
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar, cast

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping


F = TypeVar("F", bound="Callable[..., Any]")


def get_tracer(name: str) -> trace.Tracer:
    """Return a named tracer (a no-op tracer when tracing is not configured)."""
    return trace.get_tracer(name)


def get_current_span() -> trace.Span:
    """Return the active span, or a non-recording span outside any trace."""
    return trace.get_current_span()


def set_span_error(span: trace.Span, exc: BaseException) -> None:
    """Record ``exc`` on ``span`` and set ERROR status."""
    span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
    span.record_exception(exc)


@contextmanager
def _span(
    tracer: trace.Tracer,
    name: str,
    kind: trace.SpanKind,
    attributes: Mapping[str, Any] | None,
) -> Iterator[trace.Span]:
    with tracer.start_as_current_span(
        name,
        kind=kind,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as exc:
            set_span_error(span, exc)
            raise
        span.set_status(Status(StatusCode.OK))


def traced_operation(
    name: str,
    *,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **span_attributes: Any,
) -> Callable[[F], F]:
    """Decorator that runs the wrapped callable inside a span.

    Supports both coroutine functions and plain functions.

    Args:
        name: Span name (e.g., ``"identity.create_user"``).
        kind: Span kind.
        **span_attributes: Attributes set on every span (e.g., ``db_system``).
    """

    def decorator(func: F) -> F:
        tracer = trace.get_tracer(func.__module__)

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _span(tracer, name, kind, span_attributes):
                    return await func(*args, **kwargs)

            return cast("F", async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(tracer, name, kind, span_attributes):
                return func(*args, **kwargs)

        return cast("F", sync_wrapper)

    return decorator


@contextmanager
def start_span(
    name: str,
    attributes: Mapping[str, Any] | None = None,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
) -> Iterator[trace.Span]:
    """Context manager that opens a child span for a block.

    ``None`` attribute values are skipped.

    Example:
        >>> with start_span("provisioning.tenant", {"academy.subdomain": "acme"}) as span:
        ...     span.set_attribute("academy.id", "...")
    """
    with _span(trace.get_tracer(__name__), name, kind, attributes) as span:
        yield span

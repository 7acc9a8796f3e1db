"""Tracing middleware for trace-log correlation.

Binds the active OpenTelemetry trace and span ids to structlog context
variables so that every log line emitted while handling a request can be
joined with its trace.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace

from scholaris.foundation.application.contributions import MiddlewareContribution

if TYPE_CHECKING:
    from collections.abc import Callable


def _trace_ids() -> tuple[str, str] | None:
    span = trace.get_current_span()
    if not span.is_recording():
        return None
    ctx = span.get_span_context()
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")


class TraceContextMiddleware:
    """Pure ASGI middleware binding ``trace_id``/``span_id`` to structlog.

    A no-op when tracing is disabled (the current span is non-recording).
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        ids = _trace_ids()
        if ids is None:
            await self.app(scope, receive, send)
            return

        trace_id, span_id = ids
        structlog.contextvars.bind_contextvars(trace_id=trace_id, span_id=span_id)
        try:
            await self.app(scope, receive, send)
        finally:
            structlog.contextvars.unbind_contextvars("trace_id", "span_id")


# Inside RequestIdMiddleware (10) so the FastAPI server span is already open.
contribution = MiddlewareContribution(
    middleware_class=TraceContextMiddleware,
    priority=20,
)

"""Scholaris Infra Observability -- structlog logging and OpenTelemetry tracing."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from scholaris.foundation.application.contributions import (
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LifespanContribution,
)
from scholaris.infra.observability.instrumentation import (
    get_current_span,
    start_span,
    traced_operation,
)
from scholaris.infra.observability.logging import (
    LoggingSettings,
    configure_logging,
    get_logger,
)
from scholaris.infra.observability.middleware import TraceContextMiddleware
from scholaris.infra.observability.tracing import (
    TracingSettings,
    configure_tracing,
    shutdown_tracing,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def _observability_lifespan(app: Any) -> AsyncIterator[None]:
    configure_logging()
    configure_tracing(app)
    logger.info("observability_configured")
    try:
        yield
    finally:
        shutdown_tracing()


lifespan_contribution = LifespanContribution(
    hook=_observability_lifespan,
    priority=LIFESPAN_PRIORITY_OBSERVABILITY,
)

__all__ = [
    "LoggingSettings",
    "TraceContextMiddleware",
    "TracingSettings",
    "configure_logging",
    "configure_tracing",
    "get_current_span",
    "get_logger",
    "lifespan_contribution",
    "shutdown_tracing",
    "start_span",
    "traced_operation",
]

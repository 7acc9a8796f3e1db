"""Contribution types for the auto-discovery system.

Packages expose instances of these dataclasses through entry points; the
app factory turns them into middleware, exception handlers and lifespan
hooks. They carry no framework imports so that domain packages can declare
contributions without depending on FastAPI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MIDDLEWARE_PRIORITY_MIN = 0
MIDDLEWARE_PRIORITY_MAX = 499

# Lifespan start order: telemetry first so later startup is logged, then token
# verification keys, the database, the identity client, and finally tenancy
# (which needs the database and the identity client).
LIFESPAN_PRIORITY_OBSERVABILITY = 50
LIFESPAN_PRIORITY_AUTH = 60
LIFESPAN_PRIORITY_PERSISTENCE = 75
LIFESPAN_PRIORITY_IDENTITY = 90
LIFESPAN_PRIORITY_TENANCY = 100
LIFESPAN_PRIORITY_TASKIQ = 150


@dataclass(frozen=True, slots=True)
class MiddlewareContribution:
    """Describes a middleware to be auto-discovered and registered.

    Attributes:
        middleware_class: The ASGI middleware class.
        priority: Lower numbers run first (outermost). Bands: 0-99 outermost
            (request id, tracing), 100-199 security, 200-299 request context.
        kwargs: Extra keyword arguments for ``add_middleware()``.
    """

    middleware_class: type[Any]
    priority: int = 400
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not MIDDLEWARE_PRIORITY_MIN <= self.priority <= MIDDLEWARE_PRIORITY_MAX:
            msg = (
                f"Middleware priority must be between {MIDDLEWARE_PRIORITY_MIN} "
                f"and {MIDDLEWARE_PRIORITY_MAX}, got {self.priority}"
            )
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ErrorHandlerContribution:
    """Maps an exception type to an async ``(Request, Exception) -> Response`` handler."""

    exception_class: type[BaseException]
    handler: Any


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """Describes a lifespan hook to be auto-discovered and registered.

    Attributes:
        hook: Async context manager factory ``(app) -> AsyncContextManager[None]``.
        priority: Lower priorities start first and shut down last.
    """

    hook: Any
    priority: int = 500

    def __post_init__(self) -> None:
        if self.priority < 0:
            msg = f"Lifespan priority must be non-negative, got {self.priority}"
            raise ValueError(msg)

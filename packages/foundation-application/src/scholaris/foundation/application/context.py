"""Request context management for cross-cutting concerns.

Provides a ContextVar-based mechanism for propagating request-scoped data
(academy id, acting identity id, correlation id) across the call stack
without explicit parameter passing.

Public endpoints (provisioning, public-site resolution) run with empty
academy and user ids; staff endpoints receive both from the gateway in
front of the API.

Usage:
    # In middleware (automatically populates context)
    from scholaris.foundation.application.context import set_request_context

    # In handlers/services
    from scholaris.foundation.application.context import get_current_user_id

    user_id = get_current_user_id()  # Raises if no context
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Immutable container for request-scoped context data.

    Attributes:
        academy_id: The academy (tenant) the request acts on, or ``""``.
        user_id: Identity-provider id of the caller, or ``""`` when anonymous.
        correlation_id: Unique ID for distributed tracing.
    """

    academy_id: str
    user_id: str
    correlation_id: str

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


# ContextVar for request-scoped data - None when no request is active
request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


class NoRequestContextError(RuntimeError):
    """Raised when request context is accessed outside of a request."""

    def __init__(self) -> None:
        super().__init__(
            "No request context available. "
            "Ensure this code is called within an HTTP request with context middleware."
        )


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        NoRequestContextError: If called outside of a request context.
    """
    ctx = request_context.get()
    if ctx is None:
        raise NoRequestContextError()
    return ctx


def get_optional_context() -> RequestContext | None:
    """Get the current request context, or None outside a request."""
    return request_context.get()


def get_current_academy_id() -> str:
    """Get the academy id of the current request (``""`` if none was sent)."""
    return get_current_context().academy_id


def get_current_user_id() -> str:
    """Get the caller's identity id (``""`` for anonymous requests)."""
    return get_current_context().user_id


def get_current_correlation_id() -> str:
    """Get the current correlation ID for distributed tracing."""
    return get_current_context().correlation_id


def set_request_context(
    academy_id: str,
    user_id: str,
    correlation_id: str,
) -> Token[RequestContext | None]:
    """Set the request context for the current async task.

    Should be called by middleware at the start of request handling.
    Returns a token that must be used to reset the context.

    Args:
        academy_id: The academy identifier.
        user_id: The caller's identity id.
        correlation_id: The correlation ID for tracing.

    Returns:
        Token for resetting the context via :func:`clear_request_context`.
    """
    ctx = RequestContext(
        academy_id=academy_id,
        user_id=user_id,
        correlation_id=correlation_id,
    )
    return request_context.set(ctx)


def clear_request_context(token: Token[RequestContext | None]) -> None:
    """Reset the request context using the provided token."""
    request_context.reset(token)

"""Scholaris Foundation Application -- request context and discovery seams."""

from scholaris.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    clear_request_context,
    get_current_academy_id,
    get_current_context,
    get_current_correlation_id,
    get_current_user_id,
    get_optional_context,
    set_request_context,
)
from scholaris.foundation.application.contributions import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
)
from scholaris.foundation.application.discovery import (
    DiscoveredContribution,
    discover,
)

__all__ = [
    "DiscoveredContribution",
    "ErrorHandlerContribution",
    "LifespanContribution",
    "MiddlewareContribution",
    "NoRequestContextError",
    "RequestContext",
    "clear_request_context",
    "discover",
    "get_current_academy_id",
    "get_current_context",
    "get_current_correlation_id",
    "get_current_user_id",
    "get_optional_context",
    "set_request_context",
]

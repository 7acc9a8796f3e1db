"""Middleware populating the request context.

- Academy: ``X-Tenant-ID`` header, the academy the request acts on
  (absent on public routes). It is only a request; ``get_caller`` checks
  it against the caller's profile.
- Caller: the ``sub`` claim of the access token verified by
  :class:`~scholaris.infra.auth.middleware.jwt_auth.JWTAuthMiddleware`,
  read from ``scope["state"]["jwt_claims"]``. Empty when anonymous.
  No header can set the caller.
- Correlation id: ``X-Correlation-ID``, defaulting to the request id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

from scholaris.foundation.application import MiddlewareContribution
from scholaris.foundation.application.context import (
    clear_request_context,
    set_request_context,
)
from scholaris.infra.fastapi.middleware.request_id import extract_header, get_request_id

if TYPE_CHECKING:
    from collections.abc import Callable

TENANT_ID_HEADER = "X-Tenant-ID"
JWT_CLAIMS_STATE_KEY = "jwt_claims"
CORRELATION_ID_HEADER = "X-Correlation-ID"


class RequestContextMiddleware:
    """Pure ASGI middleware setting :class:`RequestContext` for each request."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        headers = scope.get("headers", [])
        academy_id = extract_header(headers, b"x-tenant-id").strip()
        user_id = _subject(scope)
        correlation_id = (
            extract_header(headers, b"x-correlation-id").strip()
            or get_request_id()
            or str(uuid4())
        )

        token = set_request_context(
            academy_id=academy_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        structlog.contextvars.bind_contextvars(
            academy_id=academy_id or None, correlation_id=correlation_id
        )

        async def send_with_correlation_id(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                resp_headers = list(message.get("headers", []))
                resp_headers.append((b"x-correlation-id", correlation_id.encode("latin-1")))
                message = {**message, "headers": resp_headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation_id)
        finally:
            clear_request_context(token)
            structlog.contextvars.unbind_contextvars("academy_id", "correlation_id")


def _subject(scope: dict[str, Any]) -> str:
    """Verified ``sub`` claim of the request, or ``""`` when anonymous."""
    state = scope.get("state") or {}
    claims = state.get(JWT_CLAIMS_STATE_KEY) or {}
    subject = claims.get("sub")
    return subject.strip() if isinstance(subject, str) else ""


contribution = MiddlewareContribution(
    middleware_class=RequestContextMiddleware,
    priority=200,
)

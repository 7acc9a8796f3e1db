"""RFC 7807 Problem Details exception handlers.

Domain exceptions raised anywhere below a route are rendered as
``application/problem+json`` responses:

==============================  ======
Exception                       Status
==============================  ======
AuthenticationError             401
AuthorizationError              403
ModuleDisabledError             403
NotFoundError                   404
ConflictError                   409
ValidationError                 422
DomainError (fallback)          400
AvailabilityError               503
TenantStoreError                503
IdentityProviderError           503
RequestValidationError          422
Exception (catch-all)           500
==============================  ======

Usage:
    from scholaris.infra.fastapi.error_handlers import register_exception_handlers

    register_exception_handlers(app)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from scholaris.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    AvailabilityError,
    ConflictError,
    DomainError,
    ModuleDisabledError,
    NotFoundError,
    ValidationError,
)
from scholaris.foundation.domain.ports.identity_provider import IdentityProviderError
from scholaris.foundation.domain.ports.tenant_store import TenantStoreError
from scholaris.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


class ProblemDetail(BaseModel):
    """RFC 7807 problem body.

    ``error_code``, ``context`` and ``correlation_id`` are extension members;
    ``correlation_id`` is only populated on 5xx responses.
    """

    type: str = Field(..., examples=["/errors/not-found", "/errors/module-disabled"])
    title: str = Field(..., examples=["Resource Not Found"])
    status: int = Field(..., ge=400, le=599)
    detail: str
    instance: str | None = Field(default=None, description="Request path")
    error_code: str | None = Field(default=None, examples=["TENANT_NOT_FOUND"])
    context: dict[str, Any] | None = None
    correlation_id: str | None = None


_SENSITIVE_KEYS = frozenset(
    {"password", "admin_password", "secret", "token", "api_key", "apikey", "service_key"}
)

_SENSITIVE_PATTERNS = [
    (re.compile(r"postgresql(\+\w+)?://[^@\s]*@[^/\s]*"), "postgresql://[REDACTED]@[REDACTED]"),
    (re.compile(r"password\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"secret\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "secret=[REDACTED]"),
    (re.compile(r"token\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "token=[REDACTED]"),
    (re.compile(r"api[_-]?key\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "api_key=[REDACTED]"),
]


def _problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def _correlation_id() -> str:
    return get_request_id() or "unknown"


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop secret-named keys and make values JSON-safe."""
    if not context:
        return None
    sanitized = {
        key: _sanitize_value(value)
        for key, value in context.items()
        if key.lower() not in _SENSITIVE_KEYS
    }
    return sanitized or None


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return _redact(value)
    if isinstance(value, dict):
        return _sanitize_context(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(v) for v in value]
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def _redact(text: str) -> str:
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def _domain_handler(
    slug: str, title: str, status: int
) -> Callable[[Request, DomainError], Awaitable[JSONResponse]]:
    """Build a handler rendering a :class:`DomainError` subclass as ``status``."""

    async def handler(request: Request, exc: DomainError) -> JSONResponse:
        return _problem_response(
            ProblemDetail(
                type=f"/errors/{slug}",
                title=title,
                status=status,
                detail=exc.message,
                instance=str(request.url.path),
                error_code=exc.error_code,
                context=_sanitize_context(exc.context),
            )
        )

    handler.__name__ = f"{slug.replace('-', '_')}_handler"
    return handler


not_found_handler = _domain_handler("not-found", "Resource Not Found", 404)
validation_error_handler = _domain_handler("validation-error", "Validation Error", 422)
conflict_error_handler = _domain_handler("conflict", "Conflict", 409)
authorization_error_handler = _domain_handler("forbidden", "Forbidden", 403)
module_disabled_handler = _domain_handler("module-disabled", "Module Disabled", 403)
domain_error_handler = _domain_handler("domain-error", "Bad Request", 400)


async def availability_error_handler(request: Request, exc: AvailabilityError) -> JSONResponse:
    """Render a failed availability lookup as 503 with a retry hint."""
    response = _problem_response(
        ProblemDetail(
            type="/errors/availability-check-failed",
            title="Service Unavailable",
            status=503,
            detail=exc.message,
            instance=str(request.url.path),
            error_code=exc.error_code,
            context=_sanitize_context(exc.context),
        )
    )
    response.headers["Retry-After"] = "1"
    return response


async def tenant_store_error_handler(request: Request, exc: TenantStoreError) -> JSONResponse:
    """Render an unreachable tenant store as 503.

    The underlying error is logged, never returned.
    """
    correlation_id = _correlation_id()
    logger.warning(
        "tenant_store_unavailable",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "error": _redact(str(exc)),
        },
    )
    return _problem_response(
        ProblemDetail(
            type="/errors/store-unavailable",
            title="Service Unavailable",
            status=503,
            detail="The academy store is temporarily unavailable. Please try again.",
            instance=str(request.url.path),
            error_code="STORE_UNAVAILABLE",
            correlation_id=correlation_id,
        )
    )


async def identity_provider_error_handler(
    request: Request, exc: IdentityProviderError
) -> JSONResponse:
    """Render an identity provider failure that reached a route as 503."""
    correlation_id = _correlation_id()
    logger.warning(
        "identity_provider_unavailable",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "error": exc.error,
            "status": exc.status_code,
        },
    )
    return _problem_response(
        ProblemDetail(
            type="/errors/identity-unavailable",
            title="Service Unavailable",
            status=503,
            detail="The authentication service is temporarily unavailable. Please try again.",
            instance=str(request.url.path),
            error_code="IDENTITY_UNAVAILABLE",
            correlation_id=correlation_id,
        )
    )


async def authentication_error_handler(
    request: Request,
    exc: AuthenticationError,
) -> JSONResponse:
    """Render AuthenticationError as 401 with a ``WWW-Authenticate`` challenge."""
    response = _problem_response(
        ProblemDetail(
            type=f"/errors/{exc.error_code.lower().replace('_', '-')}",
            title="Unauthorized",
            status=401,
            detail=exc.message,
            instance=str(request.url.path),
            error_code=exc.error_code,
        )
    )
    response.headers["WWW-Authenticate"] = f'Bearer realm="scholaris", error="{exc.auth_error}"'
    return response


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Render FastAPI's own body/query/path validation failures as 422."""
    errors = [
        {
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return _problem_response(
        ProblemDetail(
            type="/errors/request-validation-error",
            title="Request Validation Error",
            status=422,
            detail="Request validation failed",
            instance=str(request.url.path),
            error_code="REQUEST_VALIDATION_ERROR",
            context={"errors": errors},
        )
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the full exception and return a sanitized 500.

    In debug mode the exception type and message are included.
    """
    correlation_id = _correlation_id()
    logger.exception(
        "unhandled_exception",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )

    if getattr(request.app, "debug", False):
        detail = f"{type(exc).__name__}: {_redact(str(exc))}"
        context: dict[str, Any] | None = {"exception_type": type(exc).__name__}
    else:
        detail = "An internal error occurred. Please contact support with the correlation ID."
        context = None

    return _problem_response(
        ProblemDetail(
            type="/errors/internal-error",
            title="Internal Server Error",
            status=500,
            detail=detail,
            instance=str(request.url.path),
            error_code="INTERNAL_ERROR",
            context=context,
            correlation_id=correlation_id,
        )
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register every handler on ``app``.

    Starlette resolves handlers along the exception's MRO, so the
    :class:`DomainError` fallback only catches subclasses without their
    own entry.
    """
    handlers: list[tuple[type[Exception], Callable[..., Awaitable[JSONResponse]]]] = [
        (AuthenticationError, authentication_error_handler),
        (AuthorizationError, authorization_error_handler),
        (ModuleDisabledError, module_disabled_handler),
        (NotFoundError, not_found_handler),
        (ValidationError, validation_error_handler),
        (ConflictError, conflict_error_handler),
        (AvailabilityError, availability_error_handler),
        (DomainError, domain_error_handler),
        (TenantStoreError, tenant_store_error_handler),
        (IdentityProviderError, identity_provider_error_handler),
        (RequestValidationError, request_validation_handler),
        (Exception, unhandled_exception_handler),
    ]
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, handler)

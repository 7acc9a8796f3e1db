"""Scholaris Infra FastAPI -- app factory, middleware, error handlers, dependencies."""

from scholaris.infra.fastapi.app_factory import create_app
from scholaris.infra.fastapi.dependencies import (
    Caller,
    get_caller,
    get_tenant_store,
    require_module,
)
from scholaris.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from scholaris.infra.fastapi.middleware import (
    RequestContextMiddleware,
    RequestIdMiddleware,
    get_request_id,
)
from scholaris.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "Caller",
    "ProblemDetail",
    "RequestContextMiddleware",
    "RequestIdMiddleware",
    "create_app",
    "get_caller",
    "get_request_id",
    "get_tenant_store",
    "register_exception_handlers",
    "require_module",
]

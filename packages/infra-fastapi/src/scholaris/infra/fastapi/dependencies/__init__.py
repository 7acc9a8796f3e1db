"""FastAPI dependencies for staff endpoints."""

from scholaris.infra.fastapi.dependencies.entitlements import (
    Caller,
    get_caller,
    get_tenant_store,
    require_module,
)

__all__ = [
    "Caller",
    "get_caller",
    "get_tenant_store",
    "require_module",
]

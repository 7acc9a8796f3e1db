"""FastAPI dependencies for caller resolution and module gating.

Provides ``get_caller`` which loads the calling staff member's profile and
academy, and the ``require_module()`` factory which applies the module
entitlement rule to it.

Usage in endpoint::

    from scholaris.infra.fastapi.dependencies.entitlements import require_module

    @router.get("/finance/summary")
    async def finance_summary(
        caller: Annotated[Caller, Depends(require_module("finance"))],
    ):
        # Only runs for finance roles in academies with finance enabled
        ...
"""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI dependency injection needs runtime-evaluable type annotations
# on the inner functions (``request: Request``) to resolve parameters.

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from scholaris.foundation.application.context import (
    get_current_academy_id,
    get_current_user_id,
)
from scholaris.foundation.domain.entitlements import (
    ALWAYS_VISIBLE,
    is_module_enabled,
    is_role_entitled,
    visible_modules,
)
from scholaris.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ModuleDisabledError,
)
from scholaris.foundation.domain.ports.tenant_store import (
    AcademyRecord,
    ProfileRecord,
    TenantStorePort,
)


@dataclass(frozen=True, slots=True)
class Caller:
    """The authenticated staff member behind a request.

    Attributes:
        profile: The caller's profile row.
        academy: The caller's academy, or None for platform admins.
    """

    profile: ProfileRecord
    academy: AcademyRecord | None

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def modules_config(self) -> dict[str, bool]:
        return dict(self.academy.modules) if self.academy is not None else {}

    def visible_modules(self) -> list[str]:
        """Modules the caller may open, in catalog order."""
        return visible_modules(self.role, self.modules_config)


def get_tenant_store(request: Request) -> TenantStorePort:
    """Retrieve the tenant store from FastAPI app state.

    Expects ``request.app.state.tenant_store`` to be set during lifespan
    startup.
    """
    return request.app.state.tenant_store  # type: ignore[no-any-return]


async def get_caller(
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
) -> Caller:
    """Resolve the caller from the verified token subject in the request context.

    Raises:
        AuthenticationError: If the request carries no verified access token.
        AuthorizationError: If the caller has no active profile, or belongs
            to a different or inactive academy than the one addressed.
    """
    user_id = get_current_user_id()
    if not user_id:
        raise AuthenticationError("Authentication required", auth_error="missing_token")

    profile = await store.get_profile(user_id)
    if profile is None or not profile.is_active:
        raise AuthorizationError("No active profile for caller", {"user_id": user_id})

    academy = None
    if profile.academy_id is not None:
        requested = get_current_academy_id()
        if requested and requested != str(profile.academy_id):
            raise AuthorizationError(
                "Caller does not belong to the requested academy",
                {"user_id": user_id, "academy_id": requested},
            )
        academy = await store.get_academy(profile.academy_id)
        if academy is None or not academy.is_active:
            raise AuthorizationError(
                "Caller's academy is not active",
                {"academy_id": str(profile.academy_id)},
            )

    return Caller(profile=profile, academy=academy)


def require_module(module: str) -> Callable[..., Awaitable[Caller]]:
    """Create a FastAPI dependency that gates endpoint access on a module.

    Returns a dependency that resolves the caller and then:
    1. Passes always-visible modules (``dashboard``, ``settings``)
    2. Raises AuthorizationError (-> 403) if the caller's role may not use
       the module
    3. Raises ModuleDisabledError (-> 403) if the academy has not enabled it

    Args:
        module: Module name from the catalog.

    Returns:
        FastAPI-compatible async dependency returning the :class:`Caller`.
    """

    async def _check_module(
        caller: Annotated[Caller, Depends(get_caller)],
    ) -> Caller:
        if module in ALWAYS_VISIBLE:
            return caller
        if not is_role_entitled(module, caller.role):
            raise AuthorizationError(
                f"Role '{caller.role}' may not access module '{module}'",
                {"module": module, "role": caller.role},
            )
        academy_id = str(caller.academy.id) if caller.academy is not None else ""
        if not is_module_enabled(module, caller.modules_config):
            raise ModuleDisabledError(module, academy_id)
        return caller

    _check_module.__qualname__ = f"require_module({module!r})._check_module"

    return _check_module

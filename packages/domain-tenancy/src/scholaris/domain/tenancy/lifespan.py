"""Tenancy lifespan hook.

Startup builds the tenant store and the provisioning intent log on top of
the database manager published by the persistence hook, creates the schema
when enabled, and publishes both on ``app.state``.

Priority 100 runs after persistence (75) and identity (90).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from scholaris.domain.tenancy.infrastructure.provisioning_log import SqlProvisioningLog
from scholaris.domain.tenancy.infrastructure.schema import ensure_schema
from scholaris.domain.tenancy.infrastructure.tenant_store import SqlTenantStore
from scholaris.domain.tenancy.settings import get_tenancy_settings
from scholaris.foundation.application import LifespanContribution
from scholaris.foundation.application.contributions import LIFESPAN_PRIORITY_TENANCY
from scholaris.infra.persistence import get_database_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _tenancy_lifespan(app: Any) -> AsyncIterator[None]:
    settings = get_tenancy_settings()
    manager = getattr(app.state, "database", None) or get_database_manager()

    if settings.auto_create_schema:
        await ensure_schema(manager.get_engine())

    session_factory = manager.get_session_factory()
    app.state.tenant_store = SqlTenantStore(session_factory)
    app.state.provisioning_log = (
        SqlProvisioningLog(session_factory) if settings.intent_log_enabled else None
    )
    logger.info(
        "tenancy_ready",
        extra={
            "schema_ensured": settings.auto_create_schema,
            "intent_log_enabled": settings.intent_log_enabled,
        },
    )
    yield


lifespan_contribution = LifespanContribution(
    hook=_tenancy_lifespan,
    priority=LIFESPAN_PRIORITY_TENANCY,
)

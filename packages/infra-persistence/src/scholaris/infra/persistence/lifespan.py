"""Persistence lifespan hook for startup/shutdown resource management.

Startup verifies connectivity with ``SELECT 1`` and publishes the manager on
``app.state.database`` for hooks that start later (tenancy builds its store
from it). Shutdown disposes the engine.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from scholaris.foundation.application import LifespanContribution
from scholaris.foundation.application.contributions import LIFESPAN_PRIORITY_PERSISTENCE
from scholaris.infra.persistence.database import get_database_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _persistence_lifespan(app: Any) -> AsyncIterator[None]:
    manager = get_database_manager()

    engine = manager.get_engine()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info(
        "database_health_check_passed",
        extra={
            "host": manager.settings.host,
            "database": manager.settings.name,
            "pool_budget": manager.settings.pool_size + manager.settings.max_overflow,
        },
    )

    app.state.database = manager
    try:
        yield
    finally:
        await manager.dispose()
        logger.info("database_engine_disposed")


lifespan_contribution = LifespanContribution(
    hook=_persistence_lifespan,
    priority=LIFESPAN_PRIORITY_PERSISTENCE,
)

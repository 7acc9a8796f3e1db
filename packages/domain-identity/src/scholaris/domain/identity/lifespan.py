"""Identity lifespan hook.

Startup creates the identity admin client with a shared
httpx.AsyncClient and publishes it on ``app.state.identity_provider``.
Shutdown closes the HTTP client.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx

from scholaris.domain.identity.infrastructure.admin_client import IdentityAdminClient
from scholaris.domain.identity.settings import get_identity_settings
from scholaris.foundation.application import LifespanContribution
from scholaris.foundation.application.contributions import LIFESPAN_PRIORITY_IDENTITY

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _identity_lifespan(app: Any) -> AsyncIterator[None]:
    settings = get_identity_settings()
    if not settings.service_key:
        logger.warning("identity_service_key_missing", extra={"base_url": settings.base_url})

    async with httpx.AsyncClient(timeout=settings.timeout) as http_client:
        app.state.identity_provider = IdentityAdminClient.from_settings(
            settings, client=http_client
        )
        logger.info("identity_client_ready", extra={"base_url": settings.base_url})
        yield
    logger.info("identity_client_closed")


lifespan_contribution = LifespanContribution(
    hook=_identity_lifespan,
    priority=LIFESPAN_PRIORITY_IDENTITY,
)

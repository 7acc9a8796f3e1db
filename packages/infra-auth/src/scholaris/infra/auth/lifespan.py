"""Auth lifespan hook: builds the access-token verifier.

Priority 60 starts auth after observability (50) and before persistence
(75), so signing keys are configured before the first request.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from scholaris.foundation.application import LifespanContribution
from scholaris.foundation.application.contributions import LIFESPAN_PRIORITY_AUTH
from scholaris.infra.auth.jwks import JWKSProvider
from scholaris.infra.auth.settings import get_auth_settings
from scholaris.infra.auth.verifier import AccessTokenVerifier

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _auth_lifespan(app: Any) -> AsyncIterator[None]:
    """Publish an :class:`AccessTokenVerifier` on ``app.state.token_verifier``.

    A shared secret wins over the issuer's JWKS endpoint. With neither
    configured, nothing is published and bearer tokens are answered with 503.
    """
    settings = get_auth_settings()

    if settings.jwt_secret:
        app.state.token_verifier = AccessTokenVerifier.from_settings(settings)
        logger.info("auth_lifespan: HS256 verifier configured")
    elif settings.issuer:
        provider = JWKSProvider(settings.issuer, cache_ttl=settings.jwks_cache_ttl)
        app.state.token_verifier = AccessTokenVerifier.from_settings(settings, provider)
        logger.info("auth_lifespan: JWKS verifier configured")
    else:
        logger.warning("auth_lifespan: no AUTH_JWT_SECRET or AUTH_ISSUER, tokens rejected")

    try:
        yield
    finally:
        logger.info("auth_lifespan: shutdown complete")


lifespan_contribution = LifespanContribution(
    hook=_auth_lifespan,
    priority=LIFESPAN_PRIORITY_AUTH,
)

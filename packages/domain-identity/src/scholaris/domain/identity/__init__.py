"""Scholaris Domain Identity -- identity provider admin client and sessions."""

from scholaris.domain.identity.infrastructure.admin_client import (
    IdentityAdminClient,
    Session,
)
from scholaris.domain.identity.lifespan import lifespan_contribution
from scholaris.domain.identity.settings import IdentitySettings, get_identity_settings

__all__ = [
    "IdentityAdminClient",
    "IdentitySettings",
    "Session",
    "get_identity_settings",
    "lifespan_contribution",
]

"""Scholaris Domain Identity Infrastructure -- identity provider adapters."""

from scholaris.domain.identity.infrastructure.admin_client import (
    IdentityAdminClient,
    Session,
)

__all__ = [
    "IdentityAdminClient",
    "Session",
]

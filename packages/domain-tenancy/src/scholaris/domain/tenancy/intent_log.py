"""Durable record of in-flight provisioning attempts.

An intent is written before the identity is created and resolved once the
academy exists (committed) or the identity has been rolled back
(discarded). Intents that stay pending past a grace period mark
identities that may have been orphaned by a crash or a failed
compensation; :class:`~scholaris.domain.tenancy.reconciler.OrphanedIdentityReconciler`
cleans them up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class PendingProvisioning:
    """A provisioning intent that has been neither committed nor discarded.

    Attributes:
        id: Intent id.
        subdomain: Requested academy subdomain.
        admin_email: Email of the director account being created.
        identity_id: Identity created in Phase 1, or None if the attempt
            stopped before (or while) creating it.
        created_at: When the intent was recorded.
    """

    id: UUID
    subdomain: str
    admin_email: str
    identity_id: str | None
    created_at: datetime


@runtime_checkable
class ProvisioningLogPort(Protocol):
    """Port for the provisioning intent log."""

    async def record_pending(self, subdomain: str, admin_email: str) -> UUID:
        """Record a new pending intent and return its id."""
        ...

    async def attach_identity(self, intent_id: UUID, identity_id: str) -> None:
        """Attach the identity created in Phase 1 to the intent."""
        ...

    async def mark_committed(self, intent_id: UUID) -> None:
        """Mark the intent as completed (academy and profile exist)."""
        ...

    async def discard(self, intent_id: UUID) -> None:
        """Remove the intent (nothing left behind to clean up)."""
        ...

    async def list_stale(self, older_than: datetime, limit: int) -> list[PendingProvisioning]:
        """Return pending intents created before ``older_than``, oldest first."""
        ...

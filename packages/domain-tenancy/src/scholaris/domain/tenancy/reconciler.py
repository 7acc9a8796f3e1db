"""Cleanup of identities orphaned by interrupted or failed provisioning.

An intent that is still pending after the grace period means the attempt
never finished, for example because the process died between the phases
or the compensating delete failed. For each stale intent the reconciler
checks whether the academy was created after all (then the intent is
committed), otherwise deletes the identity and discards the intent.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from scholaris.foundation.domain.ports.identity_provider import IdentityProviderError

if TYPE_CHECKING:
    from scholaris.domain.tenancy.intent_log import PendingProvisioning, ProvisioningLogPort
    from scholaris.foundation.domain.ports.identity_provider import IdentityProviderPort
    from scholaris.foundation.domain.ports.tenant_store import TenantStorePort

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileReport:
    """Counts from one reconciler run."""

    examined: int = 0
    deleted: int = 0
    committed: int = 0
    failed: int = 0


class OrphanedIdentityReconciler:
    """Resolves stale provisioning intents."""

    def __init__(
        self,
        log: ProvisioningLogPort,
        identity: IdentityProviderPort,
        store: TenantStorePort,
        *,
        grace: timedelta = timedelta(minutes=30),
        batch_size: int = 100,
        timeout: float | None = None,
    ) -> None:
        self._log = log
        self._identity = identity
        self._store = store
        self._grace = grace
        self._batch_size = batch_size
        self._timeout = timeout

    async def run_once(self, now: datetime | None = None) -> ReconcileReport:
        """Process one batch of stale intents.

        A failure on one intent is logged and counted; the rest of the batch
        is still processed.
        """
        cutoff = (now or datetime.now(UTC)) - self._grace
        stale = await self._log.list_stale(cutoff, self._batch_size)

        deleted = committed = failed = 0
        for intent in stale:
            try:
                outcome = await self._reconcile(intent)
            except Exception:
                failed += 1
                logger.exception(
                    "orphan_reconcile_failed",
                    extra={"intent_id": str(intent.id), "subdomain": intent.subdomain},
                )
                continue
            if outcome == "committed":
                committed += 1
            elif outcome == "deleted":
                deleted += 1

        report = ReconcileReport(
            examined=len(stale), deleted=deleted, committed=committed, failed=failed
        )
        if stale:
            logger.info(
                "orphan_reconcile_completed",
                extra={
                    "examined": report.examined,
                    "deleted": report.deleted,
                    "committed": report.committed,
                    "failed": report.failed,
                },
            )
        return report

    async def _reconcile(self, intent: PendingProvisioning) -> str:
        identity_id = intent.identity_id
        if identity_id is None:
            # Phase 1 may have succeeded before the id was attached.
            async with asyncio.timeout(self._timeout):
                found = await self._identity.find_user_by_email(intent.admin_email)
            if found is not None and found.metadata.get("admin_created") is True:
                identity_id = found.id

        if identity_id is not None:
            async with asyncio.timeout(self._timeout):
                profile = await self._store.get_profile(identity_id)
            if profile is not None:
                await self._log.mark_committed(intent.id)
                logger.info(
                    "orphan_reconcile_found_committed",
                    extra={"intent_id": str(intent.id), "identity_id": identity_id},
                )
                return "committed"

            try:
                async with asyncio.timeout(self._timeout):
                    await self._identity.delete_user(identity_id)
            except IdentityProviderError as exc:
                if not exc.is_not_found:
                    raise
            logger.warning(
                "orphaned_identity_deleted",
                extra={
                    "intent_id": str(intent.id),
                    "identity_id": identity_id,
                    "subdomain": intent.subdomain,
                },
            )
            await self._log.discard(intent.id)
            return "deleted"

        await self._log.discard(intent.id)
        return "discarded"

"""Background tasks for tenancy.

``reconcile_orphaned_identities`` runs every 15 minutes from the taskiq
scheduler and can also be enqueued on demand with ``.kiq()``. Both the
worker and the scheduler must import this module:

    taskiq worker scholaris.infra.taskiq.broker:broker scholaris.domain.tenancy.tasks
    taskiq scheduler scholaris.infra.taskiq.broker:scheduler scholaris.domain.tenancy.tasks
"""

from __future__ import annotations

import logging

from scholaris.domain.identity.infrastructure.admin_client import IdentityAdminClient
from scholaris.domain.identity.settings import get_identity_settings
from scholaris.domain.tenancy.infrastructure.provisioning_log import SqlProvisioningLog
from scholaris.domain.tenancy.infrastructure.tenant_store import SqlTenantStore
from scholaris.domain.tenancy.reconciler import OrphanedIdentityReconciler
from scholaris.domain.tenancy.settings import get_tenancy_settings
from scholaris.infra.persistence import get_database_manager
from scholaris.infra.taskiq import broker

logger = logging.getLogger(__name__)

RECONCILE_SCHEDULE = "*/15 * * * *"


async def run_reconciliation() -> dict[str, int]:
    """Run one reconciler pass against the configured database and provider."""
    settings = get_tenancy_settings()
    session_factory = get_database_manager().get_session_factory()
    identity = IdentityAdminClient.from_settings(get_identity_settings())
    try:
        reconciler = OrphanedIdentityReconciler(
            SqlProvisioningLog(session_factory),
            identity,
            SqlTenantStore(session_factory),
            grace=settings.reconcile_grace,
            batch_size=settings.reconcile_batch_size,
            timeout=settings.identity_timeout,
        )
        report = await reconciler.run_once()
    finally:
        await identity.aclose()
    return {
        "examined": report.examined,
        "deleted": report.deleted,
        "committed": report.committed,
        "failed": report.failed,
    }


@broker.task(
    task_name="tenancy.reconcile_orphaned_identities",
    schedule=[{"cron": RECONCILE_SCHEDULE}],
)
async def reconcile_orphaned_identities() -> dict[str, int]:
    """Scheduled entry point for :func:`run_reconciliation`."""
    result = await run_reconciliation()
    logger.debug("reconcile_task_finished", extra=result)
    return result

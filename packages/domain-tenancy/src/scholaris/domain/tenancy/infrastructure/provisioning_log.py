"""PostgreSQL implementation of the provisioning intent log."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from scholaris.domain.tenancy.intent_log import PendingProvisioning
from scholaris.foundation.domain.ports.tenant_store import TenantStoreError
from scholaris.infra.observability import traced_operation

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.engine import Row
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class SqlProvisioningLog:
    """Intent log stored in the ``pending_provisioning`` table.

    Committed rows are kept for auditing; discarded rows are deleted.

    Args:
        session_factory: Async session factory bound to the tenant database.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _execute(self, sql: str, params: Mapping[str, Any]) -> list[Row[Any]]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(text(sql), params)
                rows = list(result.all()) if result.returns_rows else []
                await session.commit()
        except SQLAlchemyError as exc:
            raise TenantStoreError(str(exc)) from exc
        return rows

    @traced_operation("provisioning_log.record_pending", db_system="postgresql")
    async def record_pending(self, subdomain: str, admin_email: str) -> UUID:
        rows = await self._execute(
            "INSERT INTO pending_provisioning (subdomain, admin_email) "
            "VALUES (:subdomain, :admin_email) RETURNING id",
            {"subdomain": subdomain, "admin_email": admin_email},
        )
        intent_id: UUID = rows[0].id
        return intent_id

    @traced_operation("provisioning_log.attach_identity", db_system="postgresql")
    async def attach_identity(self, intent_id: UUID, identity_id: str) -> None:
        await self._execute(
            "UPDATE pending_provisioning SET identity_id = :identity_id, updated_at = NOW() "
            "WHERE id = :id",
            {"id": intent_id, "identity_id": identity_id},
        )

    @traced_operation("provisioning_log.mark_committed", db_system="postgresql")
    async def mark_committed(self, intent_id: UUID) -> None:
        await self._execute(
            "UPDATE pending_provisioning SET status = 'committed', updated_at = NOW() "
            "WHERE id = :id",
            {"id": intent_id},
        )

    @traced_operation("provisioning_log.discard", db_system="postgresql")
    async def discard(self, intent_id: UUID) -> None:
        await self._execute(
            "DELETE FROM pending_provisioning WHERE id = :id AND status = 'pending'",
            {"id": intent_id},
        )

    @traced_operation("provisioning_log.list_stale", db_system="postgresql")
    async def list_stale(self, older_than: datetime, limit: int) -> list[PendingProvisioning]:
        rows = await self._execute(
            "SELECT id, subdomain, admin_email, identity_id, created_at "
            "FROM pending_provisioning "
            "WHERE status = 'pending' AND created_at < :older_than "
            "ORDER BY created_at ASC LIMIT :limit",
            {"older_than": older_than, "limit": limit},
        )
        return [
            PendingProvisioning(
                id=row.id,
                subdomain=row.subdomain,
                admin_email=row.admin_email,
                identity_id=row.identity_id,
                created_at=row.created_at,
            )
            for row in rows
        ]

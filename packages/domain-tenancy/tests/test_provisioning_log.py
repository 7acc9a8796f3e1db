"""Tests for the PostgreSQL provisioning intent log."""

from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from scholaris.domain.tenancy.infrastructure.provisioning_log import SqlProvisioningLog
from scholaris.foundation.domain.ports.tenant_store import TenantStoreError


def _log(rows: list[Any] | None = None, error: BaseException | None = None) -> tuple[SqlProvisioningLog, AsyncMock]:
    result = MagicMock()
    result.returns_rows = rows is not None
    result.all.return_value = rows or []
    session = AsyncMock()
    if error is not None:
        session.execute.side_effect = error
    else:
        session.execute.return_value = result
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return SqlProvisioningLog(factory), session


@pytest.mark.unit
class TestSqlProvisioningLog:
    async def test_record_pending_returns_id(self) -> None:
        intent_id = uuid4()
        log, session = _log(rows=[SimpleNamespace(id=intent_id)])

        assert await log.record_pending("test-academy", "director@example.com") == intent_id
        assert session.execute.call_args.args[1] == {
            "subdomain": "test-academy",
            "admin_email": "director@example.com",
        }
        session.commit.assert_awaited_once()

    async def test_mark_committed(self) -> None:
        log, session = _log()
        intent_id = uuid4()

        await log.mark_committed(intent_id)

        assert "status = 'committed'" in str(session.execute.call_args.args[0])
        session.commit.assert_awaited_once()

    async def test_discard_only_deletes_pending(self) -> None:
        log, session = _log()

        await log.discard(uuid4())

        assert "status = 'pending'" in str(session.execute.call_args.args[0])

    async def test_list_stale_maps_rows(self) -> None:
        created = datetime(2026, 1, 1, tzinfo=UTC)
        row = SimpleNamespace(
            id=uuid4(),
            subdomain="test-academy",
            admin_email="director@example.com",
            identity_id="idp-1",
            created_at=created,
        )
        log, session = _log(rows=[row])

        stale = await log.list_stale(datetime(2026, 1, 2, tzinfo=UTC), 10)

        assert [p.identity_id for p in stale] == ["idp-1"]
        assert session.execute.call_args.args[1]["limit"] == 10

    async def test_driver_error(self) -> None:
        log, _ = _log(error=OperationalError("UPDATE", {}, Exception("down")))
        with pytest.raises(TenantStoreError):
            await log.attach_identity(uuid4(), "idp-1")

"""Tests for the health check endpoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from scholaris.infra.fastapi._health import router


def _manager(*, fail: bool = False) -> MagicMock:
    conn = MagicMock()
    conn.execute = AsyncMock(side_effect=OSError("connection refused") if fail else None)

    @asynccontextmanager
    async def connect():  # noqa: ANN202
        yield conn

    engine = MagicMock()
    engine.connect = connect
    manager = MagicMock()
    manager.get_engine.return_value = engine
    return manager


def _app(manager: MagicMock) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.state.database = manager
    return app


async def _get(app: FastAPI):  # noqa: ANN202
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.get("/healthz")


@pytest.mark.unit
class TestHealthz:
    async def test_healthy_database(self) -> None:
        resp = await _get(_app(_manager()))
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "checks": {"database": {"status": "ok"}}}

    async def test_unreachable_database_is_degraded(self) -> None:
        resp = await _get(_app(_manager(fail=True)))
        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["checks"]["database"]["status"] == "error"
        assert "connection refused" in body["checks"]["database"]["detail"]

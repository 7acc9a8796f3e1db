"""Health check endpoint.

Reports database reachability. The API is useless without its
database, so a failed check turns the whole check into HTTP 503.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from scholaris.infra.persistence.database import get_database_manager

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


async def _check_database(request: Request) -> dict[str, str]:
    manager = getattr(request.app.state, "database", None) or get_database_manager()
    try:
        async with manager.get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("health_check_database_failed", extra={"error": str(exc)})
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok"}


@router.get("/healthz")
async def healthz(request: Request) -> Any:
    """Return ``{"status": "ok"|"degraded", "checks": {...}}``."""
    checks = {"database": await _check_database(request)}
    healthy = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(
        content={"status": "ok" if healthy else "degraded", "checks": checks},
        status_code=200 if healthy else 503,
    )

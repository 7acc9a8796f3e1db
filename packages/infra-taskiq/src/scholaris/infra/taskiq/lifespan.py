"""TaskIQ lifespan hook for broker startup/shutdown.

Starts the broker so request handlers can enqueue tasks, and shuts it
down cleanly when the application stops. Runs last (priority 150) since
tasks may depend on database access.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from scholaris.foundation.application import LifespanContribution
from scholaris.foundation.application.contributions import LIFESPAN_PRIORITY_TASKIQ
from scholaris.infra.taskiq.broker import get_broker
from scholaris.infra.taskiq.errors import TaskIQBrokerError
from scholaris.infra.taskiq.settings import get_taskiq_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _taskiq_lifespan(app: Any) -> AsyncIterator[None]:
    """Manage TaskIQ broker lifecycle.

    Raises:
        TaskIQBrokerError: If the broker fails to start.
    """
    if not get_taskiq_settings().start_broker_in_app:
        logger.info("taskiq_broker_not_started_in_app")
        yield
        return

    _broker = get_broker()
    try:
        await _broker.startup()
    except Exception as exc:
        raise TaskIQBrokerError("TaskIQ broker failed to start") from exc
    logger.info("taskiq_broker_started")

    try:
        yield
    finally:
        await _broker.shutdown()
        logger.info("taskiq_broker_shut_down")


lifespan_contribution = LifespanContribution(
    hook=_taskiq_lifespan,
    priority=LIFESPAN_PRIORITY_TASKIQ,
)

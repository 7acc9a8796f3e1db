"""Scholaris Infra TaskIQ -- Redis stream broker and scheduler."""

from scholaris.infra.taskiq.broker import (
    broker,
    get_broker,
    get_result_backend,
    get_scheduler,
    scheduler,
)
from scholaris.infra.taskiq.errors import TaskIQBrokerError, TaskIQError
from scholaris.infra.taskiq.lifespan import lifespan_contribution
from scholaris.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings

__all__ = [
    "TaskIQBrokerError",
    "TaskIQError",
    "TaskIQSettings",
    "broker",
    "get_broker",
    "get_result_backend",
    "get_scheduler",
    "get_taskiq_settings",
    "lifespan_contribution",
    "scheduler",
]

"""TaskIQ broker and scheduler on Redis Streams.

Redis Streams give acknowledged delivery, so a worker that dies mid-task
leaves the message to be redelivered.

Usage:
    from scholaris.infra.taskiq import broker

    @broker.task(schedule=[{"cron": "*/15 * * * *"}])
    async def periodic() -> None: ...

    # Worker (any number of instances)
    # taskiq worker scholaris.infra.taskiq.broker:broker <task modules>

    # Scheduler (exactly one instance)
    # taskiq scheduler scholaris.infra.taskiq.broker:scheduler <task modules>
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import (
    ListRedisScheduleSource,
    RedisAsyncResultBackend,
    RedisStreamBroker,
)

from scholaris.infra.taskiq.settings import get_taskiq_settings

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


@lru_cache(maxsize=1)
def get_result_backend() -> RedisAsyncResultBackend[Any]:
    """Get or create the result backend configured from TaskIQSettings."""
    settings = get_taskiq_settings()
    return RedisAsyncResultBackend(
        redis_url=settings.redis_url,
        result_ex_time=settings.result_ttl,
    )


@lru_cache(maxsize=1)
def get_broker() -> RedisStreamBroker:
    """Get or create the Redis stream broker with its result backend."""
    settings = get_taskiq_settings()
    return RedisStreamBroker(
        url=settings.redis_url,
        queue_name=settings.queue_name,
        consumer_group_name=settings.consumer_group,
    ).with_result_backend(get_result_backend())


@lru_cache(maxsize=1)
def get_scheduler() -> TaskiqScheduler:
    """Get or create the scheduler.

    Schedules come from two sources:
    - LabelScheduleSource: ``@broker.task(schedule=[...])`` labels
    - ListRedisScheduleSource: schedules added at runtime, stored in Redis

    WARNING: Only run ONE scheduler instance per deployment to avoid
    duplicate execution.
    """
    settings = get_taskiq_settings()
    _broker = get_broker()
    return TaskiqScheduler(
        broker=_broker,
        sources=[
            LabelScheduleSource(_broker),
            ListRedisScheduleSource(settings.redis_url, prefix=f"{settings.queue_name}:schedule"),
        ],
    )


class _LazyProxy(Generic[T]):
    """Defers creation of the wrapped object until first attribute access."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._instance: T | None = None

    def _get(self) -> T:
        if self._instance is None:
            self._instance = self._factory()
        return self._instance

    def __getattr__(self, name: str) -> Any:
        return getattr(self._get(), name)

    # isinstance() consults __class__, so the taskiq CLI accepts the proxy.
    @property  # type: ignore[misc]
    def __class__(self) -> type:  # type: ignore[override]
        return type(self._get())


# Module-level names for the taskiq CLI (``module:broker`` / ``module:scheduler``).
broker: RedisStreamBroker = _LazyProxy(get_broker)  # type: ignore[assignment]
scheduler: TaskiqScheduler = _LazyProxy(get_scheduler)  # type: ignore[assignment]

"""TaskIQ configuration using Pydantic settings.

Settings are loaded from environment variables with ``TASKIQ_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskIQSettings(BaseSettings):
    """Configuration for the TaskIQ broker and scheduler.

    Environment Variables:
        TASKIQ_REDIS_URL: Redis URL for broker, results and schedules
            (default: redis://localhost:6379/1)
        TASKIQ_RESULT_TTL: Result backend TTL in seconds (default: 3600)
        TASKIQ_QUEUE_NAME: Redis stream name (default: scholaris)
        TASKIQ_CONSUMER_GROUP: Stream consumer group (default: scholaris-workers)
        TASKIQ_START_BROKER_IN_APP: Start the broker in the API lifespan so
            the app can enqueue tasks (default: true)

    Example:
        >>> settings = TaskIQSettings()
        >>> settings.redis_url
        'redis://localhost:6379/1'
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKIQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/1",
        description="Redis URL for the TaskIQ broker",
    )
    result_ttl: int = Field(
        default=3600,
        ge=60,
        le=86400,
        description="Result backend TTL in seconds",
    )
    queue_name: str = Field(default="scholaris", description="Redis stream name")
    consumer_group: str = Field(
        default="scholaris-workers",
        description="Redis stream consumer group",
    )
    start_broker_in_app: bool = Field(
        default=True,
        description="Start the broker during API startup",
    )


@lru_cache(maxsize=1)
def get_taskiq_settings() -> TaskIQSettings:
    """Get cached TaskIQ settings singleton."""
    return TaskIQSettings()

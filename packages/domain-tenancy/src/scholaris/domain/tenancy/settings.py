"""Tenancy configuration from environment variables (``TENANCY_`` prefix)."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TenancySettings(BaseSettings):
    """Settings for provisioning, availability checks and public-site resolution.

    Attributes:
        debounce_ms: Quiet period before an availability lookup is issued.
        identity_timeout: Seconds allowed per identity-provider call.
        store_timeout: Seconds allowed per tenant-store call (or fan-out).
        auto_create_schema: Create tables and the provisioning procedure at startup.
        intent_log_enabled: Record provisioning intents for crash recovery.
        reconcile_grace_minutes: Age after which an uncommitted intent is an orphan.
        reconcile_batch_size: Max intents examined per reconciler run.
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANCY_",
        extra="ignore",
    )

    debounce_ms: int = Field(default=800, ge=0, le=10_000)
    identity_timeout: float = Field(default=10.0, gt=0)
    store_timeout: float = Field(default=10.0, gt=0)
    auto_create_schema: bool = Field(default=True)
    intent_log_enabled: bool = Field(default=True)
    reconcile_grace_minutes: int = Field(default=30, ge=1)
    reconcile_batch_size: int = Field(default=100, ge=1, le=1000)

    @property
    def reconcile_grace(self) -> timedelta:
        return timedelta(minutes=self.reconcile_grace_minutes)


@lru_cache(maxsize=1)
def get_tenancy_settings() -> TenancySettings:
    """Get cached TenancySettings. Clear with ``cache_clear()`` in tests."""
    return TenancySettings()

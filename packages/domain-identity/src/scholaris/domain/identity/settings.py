"""Identity provider configuration from environment variables.

Environment variables use the ``IDENTITY_`` prefix:
- IDENTITY_BASE_URL: Auth API base URL (e.g. ``https://project.example.com/auth/v1``)
- IDENTITY_SERVICE_KEY: Service-role key for the admin API
- IDENTITY_TIMEOUT: HTTP timeout in seconds (default: 10)
- IDENTITY_PAGE_SIZE: Page size when listing users (default: 200)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdentitySettings(BaseSettings):
    """Settings for the identity provider admin client."""

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(default="http://localhost:9999", description="Auth API base URL")
    service_key: str = Field(default="", repr=False, description="Service-role key")
    timeout: float = Field(default=10.0, gt=0, le=120, description="HTTP timeout in seconds")
    page_size: int = Field(default=200, ge=1, le=1000, description="Users per listing page")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache(maxsize=1)
def get_identity_settings() -> IdentitySettings:
    """Get cached IdentitySettings. Clear with ``cache_clear()`` in tests."""
    return IdentitySettings()

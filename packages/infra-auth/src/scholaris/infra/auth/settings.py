"""Access-token verification settings.

Loaded from environment variables with the ``AUTH_`` prefix.

Environment Variables:
    AUTH_ISSUER: Expected ``iss`` claim, the identity provider's auth URL
        (e.g. ``https://project.example.com/auth/v1``). Also the base for
        JWKS discovery.
    AUTH_AUDIENCE: Expected ``aud`` claim (default ``authenticated``)
    AUTH_JWT_SECRET: Shared HS256 signing secret. When set, tokens are
        verified with it instead of the JWKS endpoint.
    AUTH_JWKS_CACHE_TTL: JWKS key cache TTL in seconds
    AUTH_LEEWAY: Clock skew tolerated on ``exp`` in seconds
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Access-token verification configuration.

    Example:
        >>> settings = AuthSettings()
        >>> settings.audience
        'authenticated'
        >>> settings.is_configured
        False
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    issuer: str = Field(default="", description="Expected iss claim and JWKS base URL")
    audience: str = Field(default="authenticated", description="Expected aud claim")
    jwt_secret: str = Field(
        default="",
        repr=False,
        description="Shared HS256 signing secret",
    )
    jwks_cache_ttl: int = Field(
        default=300,
        ge=30,
        le=86400,
        description="JWKS key cache TTL in seconds",
    )
    leeway: int = Field(default=0, ge=0, le=300, description="Clock skew in seconds")

    @field_validator("issuer")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_configured(self) -> bool:
        """Whether tokens can be verified (a secret or an issuer is set)."""
        return bool(self.jwt_secret or self.issuer)


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Get singleton AuthSettings instance.

    Clear cache with ``get_auth_settings.cache_clear()`` for testing.
    """
    return AuthSettings()

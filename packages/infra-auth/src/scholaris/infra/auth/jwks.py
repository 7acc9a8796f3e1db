"""JWKS provider for access tokens signed with the identity provider's keys.

Wraps PyJWT's PyJWKClient:
- JWKS URI from OIDC discovery, falling back to ``{issuer}/.well-known/jwks.json``
- In-memory key caching with configurable TTL
- Refresh on kid mismatch (key rotation)

Created once during app lifespan startup.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from jwt import PyJWKClient

if TYPE_CHECKING:
    from jwt import PyJWK

logger = logging.getLogger(__name__)


class JWKSProvider:
    """JWKS key provider with caching and rotation support.

    Args:
        issuer_url: Identity provider auth URL.
        cache_ttl: Key cache TTL in seconds (default 300).

    Raises:
        ValueError: If issuer_url is empty.

    Example:
        >>> provider = JWKSProvider("https://auth.example.com/auth/v1")
        >>> signing_key = provider.get_signing_key_from_jwt(token)
    """

    def __init__(self, issuer_url: str, cache_ttl: int = 300) -> None:
        if not issuer_url:
            raise ValueError("Issuer URL is required for JWKS discovery")

        self._issuer_url = issuer_url.rstrip("/")
        self._jwks_uri = self._discover_jwks_uri() or f"{self._issuer_url}/.well-known/jwks.json"
        self._client = PyJWKClient(self._jwks_uri, cache_jwk_set=True, lifespan=cache_ttl)

        logger.info(
            "jwks_provider_initialized",
            extra={"issuer": self._issuer_url, "jwks_uri": self._jwks_uri, "cache_ttl": cache_ttl},
        )

    def _discover_jwks_uri(self) -> str | None:
        """Read ``jwks_uri`` from the OpenID discovery document, if served.

        Returns:
            Discovered JWKS URI, or ``None`` when discovery fails or the
            document names a different issuer.
        """
        discovery_url = f"{self._issuer_url}/.well-known/openid-configuration"
        try:
            with httpx.Client(timeout=5.0) as client:
                resp = client.get(discovery_url)
                resp.raise_for_status()
                doc = resp.json()
        except (httpx.HTTPError, ValueError):
            logger.debug("oidc_discovery_failed", extra={"url": discovery_url}, exc_info=True)
            return None

        discovered_issuer = str(doc.get("issuer", "")).rstrip("/")
        if discovered_issuer != self._issuer_url:
            logger.warning(
                "oidc_discovery_issuer_mismatch",
                extra={"expected": self._issuer_url, "discovered": discovered_issuer},
            )
            return None

        jwks_uri = doc.get("jwks_uri")
        if not jwks_uri:
            logger.warning("oidc_discovery_no_jwks_uri")
            return None
        return str(jwks_uri)

    def get_signing_key_from_jwt(self, token: str) -> PyJWK:
        """Return the key matching the token's ``kid``.

        Raises:
            PyJWKClientError: If the key cannot be found after a refresh.
        """
        return self._client.get_signing_key_from_jwt(token)

    @property
    def jwks_uri(self) -> str:
        return self._jwks_uri

    @property
    def issuer_url(self) -> str:
        return self._issuer_url

"""Scholaris Infra Auth -- access-token verification for API requests.

Verifies the identity provider's access tokens (HS256 shared secret or
JWKS-published keys) and exposes the claims to the request context.
"""

from scholaris.infra.auth.jwks import JWKSProvider
from scholaris.infra.auth.lifespan import lifespan_contribution
from scholaris.infra.auth.middleware.jwt_auth import JWTAuthMiddleware
from scholaris.infra.auth.settings import AuthSettings, get_auth_settings
from scholaris.infra.auth.verifier import AccessTokenVerifier

__all__ = [
    "AccessTokenVerifier",
    "AuthSettings",
    "JWKSProvider",
    "JWTAuthMiddleware",
    "get_auth_settings",
    "lifespan_contribution",
]

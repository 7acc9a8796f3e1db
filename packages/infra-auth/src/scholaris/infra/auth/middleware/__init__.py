"""Authentication middleware."""

from scholaris.infra.auth.middleware.jwt_auth import JWTAuthMiddleware

__all__ = ["JWTAuthMiddleware"]

"""Access-token verification.

The identity provider signs access tokens either with a shared HS256
secret or with asymmetric keys published at its JWKS endpoint. The
verifier checks the signature and the ``exp``, ``aud``, ``sub`` (and, when
configured, ``iss``) claims and returns the decoded claims.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import jwt as pyjwt

if TYPE_CHECKING:
    from scholaris.infra.auth.jwks import JWKSProvider
    from scholaris.infra.auth.settings import AuthSettings

ASYMMETRIC_ALGORITHMS = ("RS256", "ES256")


class AccessTokenVerifier:
    """Verifies identity-provider access tokens.

    Args:
        audience: Expected ``aud`` claim.
        issuer: Expected ``iss`` claim. Empty skips the issuer check.
        secret: Shared HS256 secret. Takes precedence over ``jwks_provider``.
        jwks_provider: Key source for asymmetric tokens.
        leeway: Clock skew tolerated on ``exp`` in seconds.

    Raises:
        ValueError: If neither a secret nor a JWKS provider is given.
    """

    def __init__(
        self,
        *,
        audience: str,
        issuer: str = "",
        secret: str = "",
        jwks_provider: JWKSProvider | None = None,
        leeway: int = 0,
    ) -> None:
        if not secret and jwks_provider is None:
            raise ValueError("A signing secret or a JWKS provider is required")
        self._audience = audience
        self._issuer = issuer
        self._secret = secret
        self._jwks_provider = None if secret else jwks_provider
        self._leeway = leeway

    @classmethod
    def from_settings(
        cls, settings: AuthSettings, jwks_provider: JWKSProvider | None = None
    ) -> AccessTokenVerifier:
        return cls(
            audience=settings.audience,
            issuer=settings.issuer,
            secret=settings.jwt_secret,
            jwks_provider=jwks_provider,
            leeway=settings.leeway,
        )

    def verify(self, token: str) -> dict[str, Any]:
        """Decode ``token`` and validate its signature and claims.

        Raises:
            jwt.PyJWTError: Any verification failure, including JWKS lookup
                errors.
        """
        if self._jwks_provider is None:
            key: Any = self._secret
            algorithms = ["HS256"]
        else:
            key = self._jwks_provider.get_signing_key_from_jwt(token).key
            algorithms = list(ASYMMETRIC_ALGORITHMS)

        required = ["exp", "aud", "sub"]
        if self._issuer:
            required.append("iss")
        return pyjwt.decode(  # type: ignore[no-any-return]
            token,
            key,
            algorithms=algorithms,
            audience=self._audience,
            issuer=self._issuer or None,
            leeway=self._leeway,
            options={"require": required},
        )

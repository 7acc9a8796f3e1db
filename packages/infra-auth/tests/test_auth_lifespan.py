"""Tests for the auth lifespan hook."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from scholaris.infra.auth.lifespan import _auth_lifespan, lifespan_contribution
from scholaris.infra.auth.settings import AuthSettings
from scholaris.infra.auth.verifier import AccessTokenVerifier


def _settings(**values: object) -> AuthSettings:
    return AuthSettings(_env_file=None, **values)  # type: ignore[arg-type]


@pytest.mark.unit
class TestAuthLifespan:
    async def test_secret_builds_hs256_verifier(self) -> None:
        app = SimpleNamespace(state=SimpleNamespace())
        settings = _settings(jwt_secret="lifespan-test-secret-0123456789abcdef", issuer="https://auth.example.com")
        with (
            patch("scholaris.infra.auth.lifespan.get_auth_settings", return_value=settings),
            patch("scholaris.infra.auth.lifespan.JWKSProvider") as mock_provider,
        ):
            async with _auth_lifespan(app):
                assert isinstance(app.state.token_verifier, AccessTokenVerifier)
        mock_provider.assert_not_called()

    async def test_issuer_builds_jwks_verifier(self) -> None:
        app = SimpleNamespace(state=SimpleNamespace())
        settings = _settings(issuer="https://auth.example.com", jwks_cache_ttl=600)
        provider = MagicMock()
        with (
            patch("scholaris.infra.auth.lifespan.get_auth_settings", return_value=settings),
            patch("scholaris.infra.auth.lifespan.JWKSProvider", return_value=provider) as mock_cls,
        ):
            async with _auth_lifespan(app):
                mock_cls.assert_called_once_with("https://auth.example.com", cache_ttl=600)
                assert isinstance(app.state.token_verifier, AccessTokenVerifier)

    async def test_unconfigured_publishes_nothing(self) -> None:
        app = SimpleNamespace(state=SimpleNamespace())
        with patch("scholaris.infra.auth.lifespan.get_auth_settings", return_value=_settings()):
            async with _auth_lifespan(app):
                assert not hasattr(app.state, "token_verifier")

    def test_contribution_priority(self) -> None:
        assert lifespan_contribution.priority == 60

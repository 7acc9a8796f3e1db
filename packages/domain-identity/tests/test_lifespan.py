"""Tests for the identity lifespan hook."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from scholaris.domain.identity.infrastructure.admin_client import IdentityAdminClient
from scholaris.domain.identity.lifespan import lifespan_contribution
from scholaris.domain.identity.settings import IdentitySettings
from scholaris.foundation.application.contributions import LIFESPAN_PRIORITY_IDENTITY


@pytest.mark.unit
class TestIdentityLifespan:
    def test_priority(self) -> None:
        assert lifespan_contribution.priority == LIFESPAN_PRIORITY_IDENTITY

    async def test_publishes_client_and_closes_http(self) -> None:
        app = SimpleNamespace(state=SimpleNamespace())
        settings = IdentitySettings(_env_file=None, service_key="secret-key")
        with patch(
            "scholaris.domain.identity.lifespan.get_identity_settings", return_value=settings
        ):
            async with lifespan_contribution.hook(app):
                provider = app.state.identity_provider
                assert isinstance(provider, IdentityAdminClient)
                http = provider._get_client()
                assert not http.is_closed

        assert http.is_closed

    async def test_warns_without_service_key(self, caplog: pytest.LogCaptureFixture) -> None:
        app = SimpleNamespace(state=SimpleNamespace())
        with patch(
            "scholaris.domain.identity.lifespan.get_identity_settings",
            return_value=IdentitySettings(_env_file=None),
        ):
            async with lifespan_contribution.hook(app):
                pass
        assert "identity_service_key_missing" in caplog.text

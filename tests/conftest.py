"""Shared fixtures for cross-package integration tests.

The app is built by ``create_app()`` from installed entry points, with the
backend lifespan hooks excluded. In-memory adapters stand in for the
database, the tenant store and the identity provider.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import jwt
import pytest
from fastapi.testclient import TestClient

from scholaris.foundation.domain.ports.identity_provider import (
    IdentityProviderError,
    IdentityRecord,
)
from scholaris.foundation.domain.ports.tenant_store import (
    AcademyCreated,
    AcademyRecord,
    ProfileRecord,
    PublicPage,
    SubdomainConflictError,
    TeamMember,
    WebsiteSettings,
)
from scholaris.infra.auth import AccessTokenVerifier
from scholaris.infra.fastapi import AppSettings, create_app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator

    from fastapi import FastAPI

# Entry-point names excluded in integration tests (no external services).
TEST_EXCLUDE_NAMES = frozenset(
    {"observability", "auth", "persistence", "identity", "tenancy", "taskiq"}
)

TEST_JWT_SECRET = "integration-test-signing-secret-0123456789"


class InMemoryIdentityProvider:
    def __init__(self) -> None:
        self.users: dict[str, IdentityRecord] = {}

    async def create_user(
        self,
        email: str,
        password: str,
        *,
        email_confirmed: bool = True,
        metadata: Any = None,
    ) -> IdentityRecord:
        record = IdentityRecord(id=f"idp-{uuid4().hex[:8]}", email=email, metadata=metadata or {})
        self.users[record.id] = record
        return record

    async def delete_user(self, user_id: str) -> None:
        if self.users.pop(user_id, None) is None:
            raise IdentityProviderError("user_not_found", "User not found", status_code=404)

    async def find_user_by_email(self, email: str) -> IdentityRecord | None:
        return next((u for u in self.users.values() if u.email == email.lower()), None)


class InMemoryTenantStore:
    def __init__(self) -> None:
        self.academies: dict[UUID, AcademyRecord] = {}
        self.profiles: dict[str, ProfileRecord] = {}
        self.settings: dict[UUID, WebsiteSettings] = {}
        self.pages: dict[tuple[UUID, str], PublicPage] = {}
        self.team: dict[UUID, list[TeamMember]] = {}

    async def subdomain_exists(self, subdomain: str) -> bool:
        return any(a.subdomain == subdomain for a in self.academies.values())

    async def find_academy_by_subdomain(self, subdomain: str) -> AcademyRecord | None:
        return next(
            (a for a in self.academies.values() if a.subdomain == subdomain and a.is_active),
            None,
        )

    async def get_academy(self, academy_id: UUID) -> AcademyRecord | None:
        return self.academies.get(academy_id)

    async def get_profile(self, user_id: str) -> ProfileRecord | None:
        return self.profiles.get(user_id)

    async def create_academy_with_user(
        self,
        *,
        academy_name: str,
        academy_subdomain: str,
        admin_full_name: str,
        admin_email: str,
        admin_password: str,
        modules_config: Any,
        user_id: str,
    ) -> AcademyCreated:
        if await self.subdomain_exists(academy_subdomain):
            raise SubdomainConflictError(academy_subdomain)
        academy = AcademyRecord(
            id=uuid4(), name=academy_name, subdomain=academy_subdomain, modules=dict(modules_config)
        )
        self.academies[academy.id] = academy
        profile = ProfileRecord(
            id=uuid4(),
            user_id=user_id,
            academy_id=academy.id,
            email=admin_email,
            full_name=admin_full_name,
            role="director",
        )
        self.profiles[user_id] = profile
        return AcademyCreated(academy_id=academy.id, profile_id=profile.id)

    async def get_website_settings(self, academy_id: UUID) -> WebsiteSettings | None:
        return self.settings.get(academy_id)

    async def get_public_page(self, academy_id: UUID, slug: str) -> PublicPage | None:
        return self.pages.get((academy_id, slug))

    async def list_team_members(self, academy_id: UUID) -> list[TeamMember]:
        return list(self.team.get(academy_id, []))

    async def upsert_website_settings(self, settings: WebsiteSettings) -> WebsiteSettings:
        saved = replace(
            settings,
            template=settings.template or "default",
            primary_color=settings.primary_color or "#1e40af",
        )
        self.settings[settings.academy_id] = saved
        return saved

    async def upsert_public_page(
        self, page: PublicPage, *, is_published: bool = True
    ) -> PublicPage:
        if is_published:
            self.pages[(page.academy_id, page.slug)] = page
        else:
            self.pages.pop((page.academy_id, page.slug), None)
        return page

    async def update_academy(
        self,
        academy_id: UUID,
        *,
        name: str | None = None,
        modules: Any = None,
        is_active: bool | None = None,
    ) -> AcademyRecord | None:
        academy = self.academies.get(academy_id)
        if academy is None:
            return None
        if name is not None:
            academy = replace(academy, name=name)
        if modules is not None:
            academy = replace(academy, modules=dict(modules))
        if is_active is not None:
            academy = replace(academy, is_active=is_active)
        self.academies[academy_id] = academy
        return academy


def _database_manager() -> MagicMock:
    conn = MagicMock()
    conn.execute = AsyncMock()

    @asynccontextmanager
    async def connect() -> AsyncIterator[MagicMock]:
        yield conn

    manager = MagicMock()
    manager.get_engine.return_value.connect = connect
    return manager


@pytest.fixture()
def tenant_store() -> InMemoryTenantStore:
    return InMemoryTenantStore()


@pytest.fixture()
def identity_provider() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture()
def app(
    tenant_store: InMemoryTenantStore, identity_provider: InMemoryIdentityProvider
) -> FastAPI:
    application = create_app(settings=AppSettings(), exclude_names=TEST_EXCLUDE_NAMES)
    application.state.token_verifier = AccessTokenVerifier(
        audience="authenticated", secret=TEST_JWT_SECRET
    )
    application.state.database = _database_manager()
    application.state.tenant_store = tenant_store
    application.state.identity_provider = identity_provider
    application.state.provisioning_log = None
    return application


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the app (lifespan hooks executed)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def bearer() -> Callable[[str], dict[str, str]]:
    """Build an ``Authorization`` header carrying a signed token for ``sub``."""

    def _headers(sub: str) -> dict[str, str]:
        token = jwt.encode(
            {
                "sub": sub,
                "aud": "authenticated",
                "exp": datetime.now(UTC) + timedelta(minutes=5),
            },
            TEST_JWT_SECRET,
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers

"""Shared fixtures for domain-tenancy tests.

The fakes keep state in memory and allow failures to be injected per
operation, so each workflow test can stage exactly one fault.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest

from scholaris.domain.tenancy.intent_log import PendingProvisioning
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


class FakeIdentityProvider:
    """In-memory identity provider."""

    def __init__(self) -> None:
        self.users: dict[str, IdentityRecord] = {}
        self.create_error: BaseException | None = None
        self.delete_error: BaseException | None = None
        self.find_error: BaseException | None = None
        self.create_calls: list[dict[str, Any]] = []
        self.delete_calls: list[str] = []

    async def create_user(
        self,
        email: str,
        password: str,
        *,
        email_confirmed: bool = True,
        metadata: Any = None,
    ) -> IdentityRecord:
        self.create_calls.append(
            {"email": email, "email_confirmed": email_confirmed, "metadata": dict(metadata or {})}
        )
        if self.create_error is not None:
            raise self.create_error
        record = IdentityRecord(id=f"idp-{uuid4().hex[:8]}", email=email, metadata=metadata or {})
        self.users[record.id] = record
        return record

    async def delete_user(self, user_id: str) -> None:
        self.delete_calls.append(user_id)
        if self.delete_error is not None:
            raise self.delete_error
        if self.users.pop(user_id, None) is None:
            raise IdentityProviderError("user_not_found", "User not found", status_code=404)

    async def find_user_by_email(self, email: str) -> IdentityRecord | None:
        if self.find_error is not None:
            raise self.find_error
        return next((u for u in self.users.values() if u.email == email.lower()), None)


class FakeTenantStore:
    """In-memory tenant store with the uniqueness rule on subdomains."""

    def __init__(self) -> None:
        self.academies: dict[UUID, AcademyRecord] = {}
        self.profiles: dict[str, ProfileRecord] = {}
        self.settings: dict[UUID, WebsiteSettings] = {}
        self.pages: dict[tuple[UUID, str], PublicPage] = {}
        self.drafts: dict[tuple[UUID, str], PublicPage] = {}
        self.team: dict[UUID, list[TeamMember]] = {}
        self.create_error: BaseException | None = None
        self.exists_error: BaseException | None = None
        self.create_delay: float = 0.0
        self.content_delay: float = 0.0
        self.lookups: list[str] = []
        self.content_started: list[str] = []

    def add_academy(self, subdomain: str, **fields: Any) -> AcademyRecord:
        academy = AcademyRecord(
            id=fields.pop("id", uuid4()),
            name=fields.pop("name", subdomain.title()),
            subdomain=subdomain,
            **fields,
        )
        self.academies[academy.id] = academy
        return academy

    async def subdomain_exists(self, subdomain: str) -> bool:
        self.lookups.append(subdomain)
        if self.exists_error is not None:
            raise self.exists_error
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
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.create_error is not None:
            raise self.create_error
        if any(a.subdomain == academy_subdomain for a in self.academies.values()):
            raise SubdomainConflictError(academy_subdomain)
        academy = self.add_academy(
            academy_subdomain, name=academy_name, modules=dict(modules_config)
        )
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
        self.content_started.append("settings")
        await asyncio.sleep(self.content_delay)
        return self.settings.get(academy_id)

    async def get_public_page(self, academy_id: UUID, slug: str) -> PublicPage | None:
        self.content_started.append(slug)
        await asyncio.sleep(self.content_delay)
        return self.pages.get((academy_id, slug))

    async def list_team_members(self, academy_id: UUID) -> list[TeamMember]:
        self.content_started.append("team")
        await asyncio.sleep(self.content_delay)
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
        key = (page.academy_id, page.slug)
        if is_published:
            self.pages[key] = page
            self.drafts.pop(key, None)
        else:
            self.drafts[key] = page
            self.pages.pop(key, None)
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
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if modules is not None:
            changes["modules"] = dict(modules)
        if is_active is not None:
            changes["is_active"] = is_active
        academy = replace(academy, **changes)
        self.academies[academy_id] = academy
        return academy


class FakeProvisioningLog:
    """In-memory provisioning intent log."""

    def __init__(self) -> None:
        self.intents: dict[UUID, dict[str, Any]] = {}
        self.record_error: BaseException | None = None

    async def record_pending(self, subdomain: str, admin_email: str) -> UUID:
        if self.record_error is not None:
            raise self.record_error
        intent_id = uuid4()
        self.intents[intent_id] = {
            "subdomain": subdomain,
            "admin_email": admin_email,
            "identity_id": None,
            "status": "pending",
            "created_at": datetime.now(UTC),
        }
        return intent_id

    async def attach_identity(self, intent_id: UUID, identity_id: str) -> None:
        self.intents[intent_id]["identity_id"] = identity_id

    async def mark_committed(self, intent_id: UUID) -> None:
        self.intents[intent_id]["status"] = "committed"

    async def discard(self, intent_id: UUID) -> None:
        self.intents.pop(intent_id, None)

    async def list_stale(self, older_than: datetime, limit: int) -> list[PendingProvisioning]:
        pending = [
            PendingProvisioning(
                id=intent_id,
                subdomain=row["subdomain"],
                admin_email=row["admin_email"],
                identity_id=row["identity_id"],
                created_at=row["created_at"],
            )
            for intent_id, row in self.intents.items()
            if row["status"] == "pending" and row["created_at"] < older_than
        ]
        pending.sort(key=lambda p: p.created_at)
        return pending[:limit]

    def statuses(self) -> list[str]:
        return [row["status"] for row in self.intents.values()]


@pytest.fixture()
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture()
def store() -> FakeTenantStore:
    return FakeTenantStore()


@pytest.fixture()
def provisioning_log() -> FakeProvisioningLog:
    return FakeProvisioningLog()

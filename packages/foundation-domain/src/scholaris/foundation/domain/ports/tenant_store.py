"""Port interface for the tenant-data store.

The tenant store holds academies, staff profiles and each academy's public
website content. Creation of an academy together with its first profile
is a single server-side transaction exposed as
:meth:`TenantStorePort.create_academy_with_user`. Website settings and pages
are upserted on their natural keys; academies are updated in place and
keep their subdomain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID


class TenantStoreError(Exception):
    """Raised when a tenant-store operation fails.

    The message may carry driver text; it is for logs only.
    """


class SubdomainConflictError(TenantStoreError):
    """Raised when creating an academy violates subdomain uniqueness."""

    def __init__(self, subdomain: str) -> None:
        self.subdomain = subdomain
        super().__init__(f"Subdomain already exists: {subdomain}")


@dataclass(frozen=True, slots=True)
class AcademyRecord:
    """An academy row."""

    id: UUID
    name: str
    subdomain: str
    modules: Mapping[str, bool] = field(default_factory=dict)
    is_active: bool = True
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ProfileRecord:
    """A staff profile linking an identity to an academy."""

    id: UUID
    user_id: str
    academy_id: UUID | None
    email: str
    full_name: str
    role: str
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class AcademyCreated:
    """Identifiers returned by the create-academy procedure."""

    academy_id: UUID
    profile_id: UUID


@dataclass(frozen=True, slots=True)
class WebsiteSettings:
    """Public website configuration of one academy."""

    academy_id: UUID
    template: str | None = None
    primary_color: str | None = None
    logo_url: str | None = None
    favicon_url: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    social_media: Mapping[str, Any] = field(default_factory=dict)
    seo_settings: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PublicPage:
    """A published page of the academy's public site."""

    academy_id: UUID
    slug: str
    title: str
    content: Any = None
    meta_description: str | None = None


@dataclass(frozen=True, slots=True)
class TeamMember:
    """A published team member shown on the academy's public site."""

    id: UUID
    name: str
    position: str | None = None
    bio: str | None = None
    image_url: str | None = None
    display_order: int | None = None


@runtime_checkable
class TenantStorePort(Protocol):
    """Port for tenant data: reads, the atomic academy creation and content writes.

    Implementations raise :class:`TenantStoreError` for any failure and
    :class:`SubdomainConflictError` for a subdomain uniqueness violation.
    """

    async def subdomain_exists(self, subdomain: str) -> bool:
        """Return True if any academy (active or not) holds ``subdomain``."""
        ...

    async def find_academy_by_subdomain(self, subdomain: str) -> AcademyRecord | None:
        """Return the active academy serving ``subdomain``, if any."""
        ...

    async def get_academy(self, academy_id: UUID) -> AcademyRecord | None:
        """Return an academy by id, if any."""
        ...

    async def get_profile(self, user_id: str) -> ProfileRecord | None:
        """Return the profile of an identity, if any."""
        ...

    async def create_academy_with_user(
        self,
        *,
        academy_name: str,
        academy_subdomain: str,
        admin_full_name: str,
        admin_email: str,
        admin_password: str,
        modules_config: Mapping[str, bool],
        user_id: str,
    ) -> AcademyCreated:
        """Create the academy row and its director profile in one transaction."""
        ...

    async def get_website_settings(self, academy_id: UUID) -> WebsiteSettings | None:
        """Return the academy's website settings, if configured."""
        ...

    async def get_public_page(self, academy_id: UUID, slug: str) -> PublicPage | None:
        """Return a published page by slug, if any."""
        ...

    async def list_team_members(self, academy_id: UUID) -> list[TeamMember]:
        """Return published team members in display order."""
        ...

    async def upsert_website_settings(self, settings: WebsiteSettings) -> WebsiteSettings:
        """Insert or replace the academy's website settings.

        Conflicts on ``academy_id``; the academy has at most one row.
        """
        ...

    async def upsert_public_page(
        self, page: PublicPage, *, is_published: bool = True
    ) -> PublicPage:
        """Insert or replace a page. Conflicts on ``(academy_id, slug)``."""
        ...

    async def update_academy(
        self,
        academy_id: UUID,
        *,
        name: str | None = None,
        modules: Mapping[str, bool] | None = None,
        is_active: bool | None = None,
    ) -> AcademyRecord | None:
        """Update the given academy fields and return the row, or None if absent.

        Fields left as None are unchanged. The subdomain cannot be changed.
        """
        ...

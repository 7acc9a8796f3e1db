"""PostgreSQL implementation of :class:`TenantStorePort`.

Async repository over SQLAlchemy's async session factory using raw SQL.
Public-content reads only return published rows. Each write runs and commits
in its own session.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from psycopg.errors import UniqueViolation
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from scholaris.domain.tenancy.infrastructure.schema import SUBDOMAIN_CONSTRAINT
from scholaris.foundation.domain.ports.tenant_store import (
    AcademyCreated,
    AcademyRecord,
    ProfileRecord,
    PublicPage,
    SubdomainConflictError,
    TeamMember,
    TenantStoreError,
    WebsiteSettings,
)
from scholaris.infra.observability import traced_operation

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from sqlalchemy.engine import Row
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

_ACADEMY_COLUMNS = "id, name, subdomain, modules, is_active, created_at"


def _academy_from_row(row: Row[Any]) -> AcademyRecord:
    return AcademyRecord(
        id=row.id,
        name=row.name,
        subdomain=row.subdomain,
        modules=dict(row.modules or {}),
        is_active=row.is_active,
        created_at=row.created_at,
    )


def _settings_from_row(row: Row[Any]) -> WebsiteSettings:
    return WebsiteSettings(
        academy_id=row.academy_id,
        template=row.template,
        primary_color=row.primary_color,
        logo_url=row.logo_url,
        favicon_url=row.favicon_url,
        contact_email=row.contact_email,
        contact_phone=row.contact_phone,
        address=row.address,
        social_media=dict(row.social_media or {}),
        seo_settings=dict(row.seo_settings or {}),
    )


def _page_from_row(row: Row[Any]) -> PublicPage:
    return PublicPage(
        academy_id=row.academy_id,
        slug=row.slug,
        title=row.title,
        content=row.content,
        meta_description=row.meta_description,
    )


def _is_subdomain_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if not isinstance(orig, UniqueViolation):
        return False
    return orig.diag.constraint_name == SUBDOMAIN_CONSTRAINT


class SqlTenantStore:
    """Tenant store backed by PostgreSQL.

    Every driver error is re-raised as :class:`TenantStoreError`; the one
    exception is the subdomain uniqueness violation during creation, which
    becomes :class:`SubdomainConflictError`.

    Args:
        session_factory: Async session factory bound to the tenant database.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _fetch_one(self, sql: str, params: Mapping[str, Any]) -> Row[Any] | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(text(sql), params)
                return result.first()
        except SQLAlchemyError as exc:
            raise TenantStoreError(str(exc)) from exc

    @traced_operation("tenant_store.subdomain_exists", db_system="postgresql")
    async def subdomain_exists(self, subdomain: str) -> bool:
        row = await self._fetch_one(
            "SELECT EXISTS (SELECT 1 FROM academies WHERE subdomain = :subdomain) AS taken",
            {"subdomain": subdomain},
        )
        return bool(row is not None and row.taken)

    @traced_operation("tenant_store.find_academy_by_subdomain", db_system="postgresql")
    async def find_academy_by_subdomain(self, subdomain: str) -> AcademyRecord | None:
        row = await self._fetch_one(
            f"SELECT {_ACADEMY_COLUMNS} FROM academies "
            "WHERE subdomain = :subdomain AND is_active",
            {"subdomain": subdomain},
        )
        return None if row is None else _academy_from_row(row)

    @traced_operation("tenant_store.get_academy", db_system="postgresql")
    async def get_academy(self, academy_id: UUID) -> AcademyRecord | None:
        row = await self._fetch_one(
            f"SELECT {_ACADEMY_COLUMNS} FROM academies WHERE id = :id",
            {"id": academy_id},
        )
        return None if row is None else _academy_from_row(row)

    @traced_operation("tenant_store.get_profile", db_system="postgresql")
    async def get_profile(self, user_id: str) -> ProfileRecord | None:
        row = await self._fetch_one(
            "SELECT id, user_id, academy_id, email, full_name, role, is_active "
            "FROM profiles WHERE user_id = :user_id",
            {"user_id": user_id},
        )
        if row is None:
            return None
        return ProfileRecord(
            id=row.id,
            user_id=row.user_id,
            academy_id=row.academy_id,
            email=row.email,
            full_name=row.full_name,
            role=row.role,
            is_active=row.is_active,
        )

    @traced_operation("tenant_store.create_academy_with_user", db_system="postgresql")
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
        """Call ``create_new_academy_with_user`` and commit.

        Raises:
            SubdomainConflictError: If the subdomain is already taken.
            TenantStoreError: For any other failure.
        """
        params = {
            "academy_name": academy_name,
            "academy_subdomain": academy_subdomain,
            "admin_full_name": admin_full_name,
            "admin_email": admin_email,
            "admin_password": admin_password,
            "modules_config": json.dumps(dict(modules_config)),
            "user_id": user_id,
        }
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(
                        "SELECT created_academy_id, created_profile_id "
                        "FROM create_new_academy_with_user("
                        ":academy_name, :academy_subdomain, :admin_full_name, "
                        ":admin_email, :admin_password, "
                        "CAST(:modules_config AS JSONB), :user_id)"
                    ),
                    params,
                )
                row = result.one()
                await session.commit()
        except IntegrityError as exc:
            if _is_subdomain_violation(exc):
                raise SubdomainConflictError(academy_subdomain) from exc
            raise TenantStoreError(str(exc)) from exc
        except SQLAlchemyError as exc:
            raise TenantStoreError(str(exc)) from exc

        return AcademyCreated(
            academy_id=row.created_academy_id,
            profile_id=row.created_profile_id,
        )

    @traced_operation("tenant_store.get_website_settings", db_system="postgresql")
    async def get_website_settings(self, academy_id: UUID) -> WebsiteSettings | None:
        row = await self._fetch_one(
            "SELECT academy_id, template, primary_color, logo_url, favicon_url, "
            "contact_email, contact_phone, address, social_media, seo_settings "
            "FROM website_settings WHERE academy_id = :academy_id",
            {"academy_id": academy_id},
        )
        return None if row is None else _settings_from_row(row)

    @traced_operation("tenant_store.get_public_page", db_system="postgresql")
    async def get_public_page(self, academy_id: UUID, slug: str) -> PublicPage | None:
        row = await self._fetch_one(
            "SELECT academy_id, slug, title, content, meta_description "
            "FROM public_pages "
            "WHERE academy_id = :academy_id AND slug = :slug AND is_published",
            {"academy_id": academy_id, "slug": slug},
        )
        return None if row is None else _page_from_row(row)

    @traced_operation("tenant_store.list_team_members", db_system="postgresql")
    async def list_team_members(self, academy_id: UUID) -> list[TeamMember]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(
                        "SELECT id, name, position, bio, image_url, display_order "
                        "FROM team_members "
                        "WHERE academy_id = :academy_id AND is_published "
                        "ORDER BY display_order ASC NULLS LAST, created_at ASC, id ASC"
                    ),
                    {"academy_id": academy_id},
                )
                rows = result.all()
        except SQLAlchemyError as exc:
            raise TenantStoreError(str(exc)) from exc
        return [
            TeamMember(
                id=row.id,
                name=row.name,
                position=row.position,
                bio=row.bio,
                image_url=row.image_url,
                display_order=row.display_order,
            )
            for row in rows
        ]

    # -- Writes ---------------------------------------------------------------

    async def _write_one(self, sql: str, params: Mapping[str, Any]) -> Row[Any] | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(text(sql), params)
                row = result.first()
                await session.commit()
        except SQLAlchemyError as exc:
            raise TenantStoreError(str(exc)) from exc
        return row

    @traced_operation("tenant_store.upsert_website_settings", db_system="postgresql")
    async def upsert_website_settings(self, settings: WebsiteSettings) -> WebsiteSettings:
        row = await self._write_one(
            "INSERT INTO website_settings ("
            "academy_id, template, primary_color, logo_url, favicon_url, "
            "contact_email, contact_phone, address, social_media, seo_settings) "
            "VALUES ("
            ":academy_id, COALESCE(:template, 'default'), "
            "COALESCE(:primary_color, '#1e40af'), :logo_url, :favicon_url, "
            ":contact_email, :contact_phone, :address, "
            "CAST(:social_media AS JSONB), CAST(:seo_settings AS JSONB)) "
            "ON CONFLICT (academy_id) DO UPDATE SET "
            "template = EXCLUDED.template, primary_color = EXCLUDED.primary_color, "
            "logo_url = EXCLUDED.logo_url, favicon_url = EXCLUDED.favicon_url, "
            "contact_email = EXCLUDED.contact_email, "
            "contact_phone = EXCLUDED.contact_phone, address = EXCLUDED.address, "
            "social_media = EXCLUDED.social_media, seo_settings = EXCLUDED.seo_settings, "
            "updated_at = NOW() "
            "RETURNING academy_id, template, primary_color, logo_url, favicon_url, "
            "contact_email, contact_phone, address, social_media, seo_settings",
            {
                "academy_id": settings.academy_id,
                "template": settings.template,
                "primary_color": settings.primary_color,
                "logo_url": settings.logo_url,
                "favicon_url": settings.favicon_url,
                "contact_email": settings.contact_email,
                "contact_phone": settings.contact_phone,
                "address": settings.address,
                "social_media": json.dumps(dict(settings.social_media)),
                "seo_settings": json.dumps(dict(settings.seo_settings)),
            },
        )
        if row is None:
            raise TenantStoreError("upsert returned no row")
        return _settings_from_row(row)

    @traced_operation("tenant_store.upsert_public_page", db_system="postgresql")
    async def upsert_public_page(
        self, page: PublicPage, *, is_published: bool = True
    ) -> PublicPage:
        row = await self._write_one(
            "INSERT INTO public_pages "
            "(academy_id, slug, title, content, meta_description, is_published) "
            "VALUES (:academy_id, :slug, :title, CAST(:content AS JSONB), "
            ":meta_description, :is_published) "
            "ON CONFLICT (academy_id, slug) DO UPDATE SET "
            "title = EXCLUDED.title, content = EXCLUDED.content, "
            "meta_description = EXCLUDED.meta_description, "
            "is_published = EXCLUDED.is_published, updated_at = NOW() "
            "RETURNING academy_id, slug, title, content, meta_description",
            {
                "academy_id": page.academy_id,
                "slug": page.slug,
                "title": page.title,
                "content": json.dumps(page.content if page.content is not None else {}),
                "meta_description": page.meta_description,
                "is_published": is_published,
            },
        )
        if row is None:
            raise TenantStoreError("upsert returned no row")
        return _page_from_row(row)

    @traced_operation("tenant_store.update_academy", db_system="postgresql")
    async def update_academy(
        self,
        academy_id: UUID,
        *,
        name: str | None = None,
        modules: Mapping[str, bool] | None = None,
        is_active: bool | None = None,
    ) -> AcademyRecord | None:
        assignments: list[str] = []
        params: dict[str, Any] = {"id": academy_id}
        if name is not None:
            assignments.append("name = :name")
            params["name"] = name
        if modules is not None:
            assignments.append("modules = CAST(:modules AS JSONB)")
            params["modules"] = json.dumps(dict(modules))
        if is_active is not None:
            assignments.append("is_active = :is_active")
            params["is_active"] = is_active
        if not assignments:
            return await self.get_academy(academy_id)

        row = await self._write_one(
            f"UPDATE academies SET {', '.join(assignments)}, updated_at = NOW() "
            f"WHERE id = :id RETURNING {_ACADEMY_COLUMNS}",
            params,
        )
        return None if row is None else _academy_from_row(row)

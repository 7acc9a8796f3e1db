"""Tenant-store schema and the academy-creation procedure.

``create_new_academy_with_user`` inserts the academy row and the
director's profile in one transaction. The unique constraint
``academies_subdomain_key`` is what finally decides subdomain ownership;
the store maps its violation to :class:`SubdomainConflictError`.

The procedure accepts ``admin_password`` to keep its signature stable
for callers but never stores it. Credentials live with the identity
provider only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import text

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

SUBDOMAIN_CONSTRAINT = "academies_subdomain_key"

_TABLES_SQL = (
    """
    CREATE TABLE IF NOT EXISTS academies (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        subdomain VARCHAR(63) NOT NULL,
        modules JSONB NOT NULL DEFAULT '{}'::jsonb,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        CONSTRAINT academies_subdomain_key UNIQUE (subdomain)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        user_id TEXT NOT NULL UNIQUE,
        academy_id UUID REFERENCES academies (id) ON DELETE CASCADE,
        email TEXT NOT NULL,
        full_name TEXT NOT NULL,
        role TEXT NOT NULL,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS website_settings (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        academy_id UUID NOT NULL UNIQUE REFERENCES academies (id) ON DELETE CASCADE,
        template TEXT NOT NULL DEFAULT 'default',
        primary_color TEXT NOT NULL DEFAULT '#1e40af',
        logo_url TEXT,
        favicon_url TEXT,
        contact_email TEXT,
        contact_phone TEXT,
        address TEXT,
        social_media JSONB,
        seo_settings JSONB,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS public_pages (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        academy_id UUID NOT NULL REFERENCES academies (id) ON DELETE CASCADE,
        slug TEXT NOT NULL,
        title TEXT NOT NULL,
        content JSONB NOT NULL DEFAULT '{}'::jsonb,
        meta_description TEXT,
        is_published BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        UNIQUE (academy_id, slug)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_members (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        academy_id UUID NOT NULL REFERENCES academies (id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        position TEXT,
        bio TEXT,
        image_url TEXT,
        display_order INTEGER,
        is_published BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_team_members_academy_order
        ON team_members (academy_id, display_order)
        WHERE is_published
    """,
    """
    CREATE TABLE IF NOT EXISTS pending_provisioning (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        subdomain VARCHAR(63) NOT NULL,
        admin_email TEXT NOT NULL,
        identity_id TEXT,
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'committed')),
        created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_pending_provisioning_stale
        ON pending_provisioning (created_at)
        WHERE status = 'pending'
    """,
)

CREATE_ACADEMY_PROCEDURE_SQL = """
CREATE OR REPLACE FUNCTION create_new_academy_with_user(
    academy_name TEXT,
    academy_subdomain TEXT,
    admin_full_name TEXT,
    admin_email TEXT,
    admin_password TEXT,
    modules_config JSONB,
    user_id TEXT
)
RETURNS TABLE (created_academy_id UUID, created_profile_id UUID)
LANGUAGE plpgsql
AS $$
DECLARE
    new_academy_id UUID;
    new_profile_id UUID;
BEGIN
    INSERT INTO academies (name, subdomain, modules)
    VALUES (academy_name, academy_subdomain, COALESCE(modules_config, '{}'::jsonb))
    RETURNING id INTO new_academy_id;

    INSERT INTO profiles (user_id, academy_id, email, full_name, role)
    VALUES (create_new_academy_with_user.user_id, new_academy_id,
            admin_email, admin_full_name, 'director')
    RETURNING id INTO new_profile_id;

    RETURN QUERY SELECT new_academy_id, new_profile_id;
END;
$$
"""

SCHEMA_STATEMENTS: tuple[str, ...] = (*_TABLES_SQL, CREATE_ACADEMY_PROCEDURE_SQL)


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create the tenant-store tables and procedure if missing.

    Idempotent. Statements run one at a time in a single transaction.
    """
    async with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(text(statement))
    logger.info("tenant_schema_ensured", extra={"statements": len(SCHEMA_STATEMENTS)})

"""Public-site resolution by subdomain.

Resolves a subdomain to its academy, then loads the public content in
parallel: website settings, the ``homepage`` and ``about-us`` pages, and the
published team. All four lookups are started before any is awaited.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from scholaris.foundation.domain.exceptions import TenantNotFoundError
from scholaris.foundation.domain.ports.tenant_store import TenantStoreError
from scholaris.foundation.domain.tenant_value_objects import (
    SubdomainVerdict,
    validate_subdomain,
)
from scholaris.infra.observability import start_span

if TYPE_CHECKING:
    from scholaris.foundation.domain.ports.tenant_store import (
        AcademyRecord,
        PublicPage,
        TeamMember,
        TenantStorePort,
        WebsiteSettings,
    )

logger = logging.getLogger(__name__)

HOMEPAGE_SLUG = "homepage"
ABOUT_SLUG = "about-us"
PUBLIC_PAGE_SLUGS = (HOMEPAGE_SLUG, ABOUT_SLUG)


@dataclass(frozen=True, slots=True)
class PublicSite:
    """Everything needed to render an academy's public site.

    Missing content is not an error: an academy that has not set up its
    site yet resolves with ``configured == False``.
    """

    academy: AcademyRecord
    settings: WebsiteSettings | None = None
    homepage: PublicPage | None = None
    about: PublicPage | None = None
    team: list[TeamMember] = field(default_factory=list)

    @property
    def configured(self) -> bool:
        return self.settings is not None or self.homepage is not None


class PublicSiteResolver:
    """Resolves subdomains to :class:`PublicSite` snapshots."""

    def __init__(self, store: TenantStorePort, *, timeout: float | None = None) -> None:
        self._store = store
        self._timeout = timeout

    async def resolve(self, subdomain: str) -> PublicSite:
        """Resolve ``subdomain`` to its public site.

        Raises:
            TenantNotFoundError: If the subdomain is malformed or reserved,
                has no active academy, or the academy lookup fails.
            TenantStoreError: If a content lookup fails or the content
                fan-out exceeds the timeout.
        """
        verdict = validate_subdomain(subdomain)
        if verdict is not SubdomainVerdict.VALID:
            logger.info(
                "public_site_not_found",
                extra={"subdomain": subdomain, "reason": verdict.value},
            )
            raise TenantNotFoundError(subdomain)

        with start_span("site.resolve", {"academy.subdomain": subdomain}) as span:
            try:
                async with asyncio.timeout(self._timeout):
                    academy = await self._store.find_academy_by_subdomain(subdomain)
            except Exception as exc:
                logger.info(
                    "public_site_lookup_failed",
                    extra={"subdomain": subdomain, "error_type": type(exc).__name__},
                )
                raise TenantNotFoundError(subdomain) from exc

            if academy is None:
                logger.info(
                    "public_site_not_found",
                    extra={"subdomain": subdomain, "reason": "no-academy"},
                )
                raise TenantNotFoundError(subdomain)

            span.set_attribute("academy.id", str(academy.id))
            site = await self._load_content(academy)

        logger.debug(
            "public_site_resolved",
            extra={
                "subdomain": subdomain,
                "academy_id": str(academy.id),
                "configured": site.configured,
                "team_size": len(site.team),
            },
        )
        return site

    async def _load_content(self, academy: AcademyRecord) -> PublicSite:
        tasks = [
            asyncio.ensure_future(self._store.get_website_settings(academy.id)),
            asyncio.ensure_future(self._store.get_public_page(academy.id, HOMEPAGE_SLUG)),
            asyncio.ensure_future(self._store.get_public_page(academy.id, ABOUT_SLUG)),
            asyncio.ensure_future(self._store.list_team_members(academy.id)),
        ]
        try:
            async with asyncio.timeout(self._timeout):
                settings, homepage, about, team = await asyncio.gather(*tasks)
        except TimeoutError as exc:
            raise TenantStoreError("public content lookup timed out") from exc
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        return PublicSite(
            academy=academy,
            settings=settings,
            homepage=homepage,
            about=about,
            team=list(team),
        )

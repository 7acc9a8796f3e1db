"""Tenancy REST API routers.

- ``POST /provisioning/academies``: create an academy and its director.
  Responds with a ``{success, data | error}`` envelope, status 200 or 400.
- ``GET /subdomains/{candidate}/availability``: one-shot availability check.
- ``GET /site/{subdomain}``: public-site snapshot.
- ``GET /admin/modules``: modules visible to the calling staff member.
- ``GET /admin/website-settings``: the caller's website settings
  (requires the ``website`` module).
- ``PUT /admin/website-settings`` and ``PUT /admin/pages/{slug}``: edit the
  public site (requires the ``website`` module).
- ``PATCH /platform/academies/{academy_id}``: rename, reconfigure modules or
  deactivate an academy (platform administrators only).
"""

# NOTE: No ``from __future__ import annotations``; FastAPI resolves the
# ``Annotated[..., Depends(...)]`` parameters at runtime.

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic import ValidationError as PydanticValidationError

from scholaris.domain.tenancy.availability import check_subdomain_availability
from scholaris.domain.tenancy.provisioning import (
    AcademyProvisioningService,
    ProvisionRequest,
)
from scholaris.domain.tenancy.settings import get_tenancy_settings
from scholaris.domain.tenancy.site_resolver import (
    PUBLIC_PAGE_SLUGS,
    PublicSite,
    PublicSiteResolver,
)
from scholaris.foundation.domain.entitlements import ModuleName
from scholaris.foundation.domain.exceptions import (
    AuthorizationError,
    NotFoundError,
    ProvisioningError,
    ValidationError,
)
from scholaris.foundation.domain.ports.identity_provider import IdentityProviderPort
from scholaris.foundation.domain.ports.tenant_store import (
    PublicPage,
    TenantStorePort,
    WebsiteSettings,
)
from scholaris.foundation.domain.user_value_objects import Role
from scholaris.infra.fastapi.dependencies.entitlements import (
    Caller,
    get_caller,
    get_tenant_store,
    require_module,
)

logger = logging.getLogger(__name__)

PROVISIONING_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

router = APIRouter()


# -- Request / Response models ------------------------------------------------


class ProvisionAcademyBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    academy_name: str
    academy_subdomain: str
    admin_full_name: str
    admin_email: str
    admin_password: str = Field(repr=False)
    modules_config: dict[str, StrictBool] | None = None


class AvailabilityResponse(BaseModel):
    subdomain: str
    status: str
    available: bool
    reason: str | None = None
    message: str = ""


class AcademyOut(BaseModel):
    id: str
    name: str
    subdomain: str


class WebsiteSettingsOut(BaseModel):
    template: str | None = None
    primary_color: str | None = None
    logo_url: str | None = None
    favicon_url: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    social_media: dict[str, Any] = Field(default_factory=dict)
    seo_settings: dict[str, Any] = Field(default_factory=dict)


class PageOut(BaseModel):
    slug: str
    title: str
    content: Any = None
    meta_description: str | None = None


class TeamMemberOut(BaseModel):
    id: str
    name: str
    position: str | None = None
    bio: str | None = None
    image_url: str | None = None
    display_order: int | None = None


class PublicSiteResponse(BaseModel):
    academy: AcademyOut
    configured: bool
    settings: WebsiteSettingsOut | None = None
    homepage: PageOut | None = None
    about: PageOut | None = None
    team: list[TeamMemberOut] = Field(default_factory=list)


class VisibleModulesResponse(BaseModel):
    role: str
    academy_id: str | None
    modules: list[str]


class AdminWebsiteSettingsResponse(BaseModel):
    configured: bool
    settings: WebsiteSettingsOut | None = None


class WebsiteSettingsIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    template: str | None = None
    primary_color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    logo_url: str | None = None
    favicon_url: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    social_media: dict[str, Any] = Field(default_factory=dict)
    seo_settings: dict[str, Any] = Field(default_factory=dict)


class PageIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    content: Any = None
    meta_description: str | None = None
    is_published: StrictBool = True


class AcademyUpdateBody(BaseModel):
    """Platform-admin edit of an academy. The subdomain is immutable."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, min_length=1)
    modules: dict[str, StrictBool] | None = None
    is_active: StrictBool | None = None


class AcademyAdminOut(BaseModel):
    id: str
    name: str
    subdomain: str
    modules: dict[str, bool]
    is_active: bool


# -- Dependencies -------------------------------------------------------------


def get_identity_provider(request: Request) -> IdentityProviderPort:
    """Identity provider published on ``app.state`` by the identity lifespan."""
    return request.app.state.identity_provider  # type: ignore[no-any-return]


def get_provisioning_log(request: Request) -> Any:
    return getattr(request.app.state, "provisioning_log", None)


def get_provisioning_service(
    identity: Annotated[IdentityProviderPort, Depends(get_identity_provider)],
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
    log: Annotated[Any, Depends(get_provisioning_log)],
) -> AcademyProvisioningService:
    settings = get_tenancy_settings()
    return AcademyProvisioningService(
        identity,
        store,
        log=log,
        identity_timeout=settings.identity_timeout,
        store_timeout=settings.store_timeout,
    )


def get_site_resolver(
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
) -> PublicSiteResolver:
    return PublicSiteResolver(store, timeout=get_tenancy_settings().store_timeout)


async def require_platform_admin(
    caller: Annotated[Caller, Depends(get_caller)],
) -> Caller:
    if caller.role != Role.PLATFORM_ADMIN:
        raise AuthorizationError(
            "Only platform administrators may manage academies",
            {"role": caller.role},
        )
    return caller


# -- Endpoints ----------------------------------------------------------------


@router.options("/provisioning/academies", include_in_schema=False, tags=["provisioning"])
async def provisioning_preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=PROVISIONING_CORS_HEADERS)


@router.post("/provisioning/academies", tags=["provisioning"])
async def provision_academy(
    request: Request,
    service: Annotated[AcademyProvisioningService, Depends(get_provisioning_service)],
) -> JSONResponse:
    """Create an academy with its director account."""
    try:
        payload = await request.json()
        body = ProvisionAcademyBody.model_validate(payload)
    except (ValueError, PydanticValidationError) as exc:
        logger.info("provisioning_payload_rejected", extra={"error_type": type(exc).__name__})
        return _envelope_error("Invalid request payload")

    provision_request = ProvisionRequest(
        academy_name=body.academy_name,
        academy_subdomain=body.academy_subdomain,
        admin_full_name=body.admin_full_name,
        admin_email=body.admin_email,
        admin_password=body.admin_password,
        modules_config=body.modules_config or {},
    )
    try:
        result = await service.provision(provision_request)
    except ValidationError as exc:
        return _envelope_error(exc.reason)
    except ProvisioningError as exc:
        return _envelope_error(exc.message)

    return JSONResponse(
        {
            "success": True,
            "data": {
                "tenantId": str(result.tenant_id),
                "adminId": result.admin_id,
                "message": result.message,
            },
        },
        headers=PROVISIONING_CORS_HEADERS,
    )


@router.get("/subdomains/{candidate}/availability", tags=["provisioning"])
async def subdomain_availability(
    candidate: str,
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
) -> AvailabilityResponse:
    """Check whether a subdomain can be claimed (advisory)."""
    result = await check_subdomain_availability(
        store, candidate, timeout=get_tenancy_settings().store_timeout
    )
    return AvailabilityResponse(
        subdomain=result.subdomain,
        status=result.status.value,
        available=result.is_available,
        reason=result.reason,
        message=result.message,
    )


@router.get("/site/{subdomain}", tags=["site"])
async def public_site(
    subdomain: str,
    resolver: Annotated[PublicSiteResolver, Depends(get_site_resolver)],
) -> PublicSiteResponse:
    """Resolve an academy's public site by subdomain."""
    site = await resolver.resolve(subdomain)
    return _site_response(site)


@router.get("/admin/modules", tags=["admin"])
async def admin_modules(
    caller: Annotated[Caller, Depends(get_caller)],
) -> VisibleModulesResponse:
    """List the modules the caller may open."""
    return VisibleModulesResponse(
        role=caller.role,
        academy_id=str(caller.academy.id) if caller.academy is not None else None,
        modules=caller.visible_modules(),
    )


@router.get("/admin/website-settings", tags=["admin"])
async def admin_website_settings(
    caller: Annotated[Caller, Depends(require_module(ModuleName.WEBSITE))],
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
) -> AdminWebsiteSettingsResponse:
    """Return the caller's academy website settings."""
    if caller.academy is None:
        return AdminWebsiteSettingsResponse(configured=False)
    settings = await store.get_website_settings(caller.academy.id)
    if settings is None:
        return AdminWebsiteSettingsResponse(configured=False)
    return AdminWebsiteSettingsResponse(configured=True, settings=_settings_out(settings))


@router.put("/admin/website-settings", tags=["admin"])
async def update_website_settings(
    body: WebsiteSettingsIn,
    caller: Annotated[Caller, Depends(require_module(ModuleName.WEBSITE))],
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
) -> AdminWebsiteSettingsResponse:
    """Create or replace the caller's academy website settings."""
    academy_id = _caller_academy_id(caller)
    saved = await store.upsert_website_settings(
        WebsiteSettings(academy_id=academy_id, **body.model_dump())
    )
    logger.info("website_settings_saved", extra={"academy_id": str(academy_id)})
    return AdminWebsiteSettingsResponse(configured=True, settings=_settings_out(saved))


@router.put("/admin/pages/{slug}", tags=["admin"])
async def update_public_page(
    slug: str,
    body: PageIn,
    caller: Annotated[Caller, Depends(require_module(ModuleName.WEBSITE))],
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
) -> PageOut:
    """Create or replace one of the academy's public-site pages."""
    if slug not in PUBLIC_PAGE_SLUGS:
        raise ValidationError("slug", f"Editable pages are: {', '.join(PUBLIC_PAGE_SLUGS)}")
    academy_id = _caller_academy_id(caller)
    saved = await store.upsert_public_page(
        PublicPage(
            academy_id=academy_id,
            slug=slug,
            title=body.title,
            content=body.content,
            meta_description=body.meta_description,
        ),
        is_published=body.is_published,
    )
    logger.info(
        "public_page_saved",
        extra={"academy_id": str(academy_id), "slug": slug, "published": body.is_published},
    )
    return PageOut(
        slug=saved.slug,
        title=saved.title,
        content=saved.content,
        meta_description=saved.meta_description,
    )


@router.patch("/platform/academies/{academy_id}", tags=["platform"])
async def update_academy(
    academy_id: UUID,
    body: AcademyUpdateBody,
    _admin: Annotated[Caller, Depends(require_platform_admin)],
    store: Annotated[TenantStorePort, Depends(get_tenant_store)],
) -> AcademyAdminOut:
    """Rename an academy, change its module flags, or (de)activate it."""
    academy = await store.update_academy(
        academy_id, name=body.name, modules=body.modules, is_active=body.is_active
    )
    if academy is None:
        raise NotFoundError("Academy", academy_id)
    logger.info(
        "academy_updated",
        extra={"academy_id": str(academy_id), "fields": sorted(body.model_fields_set)},
    )
    return AcademyAdminOut(
        id=str(academy.id),
        name=academy.name,
        subdomain=academy.subdomain,
        modules=dict(academy.modules),
        is_active=academy.is_active,
    )


# -- Helpers ------------------------------------------------------------------


def _envelope_error(message: str) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message},
        status_code=400,
        headers=PROVISIONING_CORS_HEADERS,
    )


def _caller_academy_id(caller: Caller) -> UUID:
    if caller.academy is None:
        raise AuthorizationError("Caller does not belong to an academy", {"role": caller.role})
    return caller.academy.id


def _settings_out(settings: WebsiteSettings) -> WebsiteSettingsOut:
    return WebsiteSettingsOut(
        template=settings.template,
        primary_color=settings.primary_color,
        logo_url=settings.logo_url,
        favicon_url=settings.favicon_url,
        contact_email=settings.contact_email,
        contact_phone=settings.contact_phone,
        address=settings.address,
        social_media=dict(settings.social_media),
        seo_settings=dict(settings.seo_settings),
    )


def _page_out(page: PublicPage | None) -> PageOut | None:
    if page is None:
        return None
    return PageOut(
        slug=page.slug,
        title=page.title,
        content=page.content,
        meta_description=page.meta_description,
    )


def _site_response(site: PublicSite) -> PublicSiteResponse:
    return PublicSiteResponse(
        academy=AcademyOut(
            id=str(site.academy.id),
            name=site.academy.name,
            subdomain=site.academy.subdomain,
        ),
        configured=site.configured,
        settings=_settings_out(site.settings) if site.settings is not None else None,
        homepage=_page_out(site.homepage),
        about=_page_out(site.about),
        team=[
            TeamMemberOut(
                id=str(member.id),
                name=member.name,
                position=member.position,
                bio=member.bio,
                image_url=member.image_url,
                display_order=member.display_order,
            )
            for member in site.team
        ],
    )

"""Scholaris Domain Tenancy -- academy provisioning and subdomain resolution."""

from scholaris.domain.tenancy.availability import (
    AvailabilityResult,
    AvailabilityStatus,
    SubdomainAvailabilityChecker,
    check_subdomain_availability,
)
from scholaris.domain.tenancy.intent_log import PendingProvisioning, ProvisioningLogPort
from scholaris.domain.tenancy.lifespan import lifespan_contribution
from scholaris.domain.tenancy.provisioning import (
    AcademyProvisioningService,
    ProvisionRequest,
    ProvisionResult,
)
from scholaris.domain.tenancy.reconciler import OrphanedIdentityReconciler, ReconcileReport
from scholaris.domain.tenancy.settings import TenancySettings, get_tenancy_settings
from scholaris.domain.tenancy.site_resolver import PublicSite, PublicSiteResolver

__all__ = [
    "AcademyProvisioningService",
    "AvailabilityResult",
    "AvailabilityStatus",
    "OrphanedIdentityReconciler",
    "PendingProvisioning",
    "ProvisionRequest",
    "ProvisionResult",
    "ProvisioningLogPort",
    "PublicSite",
    "PublicSiteResolver",
    "ReconcileReport",
    "SubdomainAvailabilityChecker",
    "TenancySettings",
    "check_subdomain_availability",
    "get_tenancy_settings",
    "lifespan_contribution",
]

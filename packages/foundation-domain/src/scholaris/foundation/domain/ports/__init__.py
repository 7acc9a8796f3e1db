"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from scholaris.foundation.domain.ports.identity_provider import (
    IdentityProviderError,
    IdentityProviderPort,
    IdentityRecord,
)
from scholaris.foundation.domain.ports.tenant_store import (
    AcademyCreated,
    AcademyRecord,
    ProfileRecord,
    PublicPage,
    SubdomainConflictError,
    TeamMember,
    TenantStoreError,
    TenantStorePort,
    WebsiteSettings,
)

__all__ = [
    "AcademyCreated",
    "AcademyRecord",
    "IdentityProviderError",
    "IdentityProviderPort",
    "IdentityRecord",
    "ProfileRecord",
    "PublicPage",
    "SubdomainConflictError",
    "TeamMember",
    "TenantStoreError",
    "TenantStorePort",
    "WebsiteSettings",
]

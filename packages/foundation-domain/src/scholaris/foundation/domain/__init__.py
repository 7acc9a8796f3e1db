"""Scholaris Foundation Domain -- pure Python domain primitives.

This package provides the foundational building blocks for the multi-tenant
academy platform: identifiers, exceptions, value objects, the module
entitlement rules, and port interfaces for the identity provider and the
tenant-data store.
"""

from scholaris.foundation.domain.entitlements import (
    ALWAYS_VISIBLE,
    CONFIGURABLE_MODULES,
    MODULE_ROLES,
    ModuleName,
    is_visible,
    visible_modules,
)
from scholaris.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    AvailabilityError,
    ConflictError,
    DomainError,
    IdentityCreationFailedError,
    InconsistentStateError,
    ModuleDisabledError,
    NotFoundError,
    ProvisioningError,
    SubdomainTakenError,
    TenantCreationFailedError,
    TenantNotFoundError,
    ValidationError,
)
from scholaris.foundation.domain.identifiers import AcademyId, IdentityId
from scholaris.foundation.domain.ports import IdentityProviderPort, TenantStorePort
from scholaris.foundation.domain.tenant_value_objects import (
    RESERVED_SUBDOMAINS,
    AcademyName,
    Subdomain,
    SubdomainVerdict,
    validate_subdomain,
)
from scholaris.foundation.domain.user_value_objects import (
    Email,
    FullName,
    Password,
    Role,
)

__all__ = [
    "ALWAYS_VISIBLE",
    "CONFIGURABLE_MODULES",
    "MODULE_ROLES",
    "RESERVED_SUBDOMAINS",
    "AcademyId",
    "AcademyName",
    "AuthenticationError",
    "AuthorizationError",
    "AvailabilityError",
    "ConflictError",
    "DomainError",
    "Email",
    "FullName",
    "IdentityCreationFailedError",
    "IdentityId",
    "IdentityProviderPort",
    "InconsistentStateError",
    "ModuleDisabledError",
    "ModuleName",
    "NotFoundError",
    "Password",
    "ProvisioningError",
    "Role",
    "Subdomain",
    "SubdomainTakenError",
    "SubdomainVerdict",
    "TenantCreationFailedError",
    "TenantNotFoundError",
    "TenantStorePort",
    "ValidationError",
    "is_visible",
    "validate_subdomain",
    "visible_modules",
]

"""Domain exception hierarchy for type-safe error handling.

This module provides the base exception hierarchy for all domain errors.
Exceptions include structured error codes and context for consistent
API error handling and logging across bounded contexts.

Provisioning errors carry the phase that failed (``identity``, ``tenant``,
``compensation``) so callers can decide between retry and abort without
inspecting transport errors.

Example:
    >>> from scholaris.foundation.domain.exceptions import TenantNotFoundError
    >>> raise TenantNotFoundError("acme-academy")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uuid import UUID

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "AvailabilityError",
    "ConflictError",
    "DomainError",
    "IdentityCreationFailedError",
    "InconsistentStateError",
    "ModuleDisabledError",
    "NotFoundError",
    "ProvisioningError",
    "SubdomainTakenError",
    "TenantCreationFailedError",
    "TenantNotFoundError",
    "ValidationError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Provides error code and structured context for debugging. All domain
    exceptions inherit from this class to enable consistent API error
    handling and logging.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (academy IDs, field names).

    Example:
        >>> raise DomainError("Operation failed", context={"academy_id": "123"})
        DomainError: Operation failed (academy_id=123)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
                     Values are typically strings, UUIDs, or primitive types.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found.

    Attributes:
        error_code: "RESOURCE_NOT_FOUND" (class constant).
        resource_type: Type of missing resource.
        resource_id: Identifier of missing resource.
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID | str,
        **extra_context: Any,
    ) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "Academy", "Profile").
            resource_id: Identifier of missing resource. UUID is converted to string.
            **extra_context: Additional debugging context.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class TenantNotFoundError(NotFoundError):
    """Raised when a subdomain does not resolve to an academy.

    This is a user-visible "not found" outcome, not a system failure, and
    is logged at INFO level by the resolver.

    Example:
        >>> raise TenantNotFoundError("acme-academy")
        TenantNotFoundError: Academy not found: acme-academy
    """

    error_code: str = "TENANT_NOT_FOUND"

    def __init__(self, subdomain: str, **extra_context: Any) -> None:
        self.subdomain = subdomain
        super().__init__("Academy", subdomain, subdomain=subdomain, **extra_context)


class ValidationError(DomainError):
    """Raised when input fails domain validation rules.

    Maps to HTTP 422 Unprocessable Entity. Use for domain rule violations
    on command input, not for Pydantic schema validation.

    Attributes:
        error_code: "VALIDATION_ERROR" (class constant).
        field: Field path that failed validation.
        reason: Human-readable validation failure reason.

    Example:
        >>> raise ValidationError("subdomain", "This subdomain is reserved")
        ValidationError: Validation failed for 'subdomain': This subdomain is reserved
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            field: Field path that failed validation.
            reason: Human-readable validation failure reason.
            **extra_context: Additional debugging context.
        """
        self.field = field
        self.reason = reason
        message = f"Validation failed for '{field}': {reason}"
        context = {
            "field": field,
            "reason": reason,
            **extra_context,
        }
        super().__init__(message, context)


class ConflictError(DomainError):
    """Raised when operation conflicts with current system state.

    Maps to HTTP 409 Conflict.

    Attributes:
        error_code: "CONFLICT" (class constant).
        reason: Description of the conflict.
    """

    error_code: str = "CONFLICT"

    def __init__(
        self,
        reason: str,
        **context: Any,
    ) -> None:
        """Initialize conflict error.

        Args:
            reason: Description of conflict (e.g., "Email already registered").
            **context: Additional debugging context.
        """
        self.reason = reason
        message = f"Conflict: {reason}"
        super().__init__(message, context)


class ModuleDisabledError(DomainError):
    """Raised when a feature module is not enabled for the requesting academy.

    Maps to HTTP 403 Forbidden.

    Example:
        >>> raise ModuleDisabledError("finance", "5f0c...")
        ModuleDisabledError: Module 'finance' is not enabled for academy '5f0c...'
    """

    error_code: str = "MODULE_DISABLED"

    def __init__(self, module: str, academy_id: str) -> None:
        self.module = module
        self.academy_id = academy_id
        message = f"Module '{module}' is not enabled for academy '{academy_id}'"
        super().__init__(message, {"module": module, "academy_id": academy_id})


class AuthenticationError(DomainError):
    """Raised when a staff endpoint is called without a caller identity.

    Maps to HTTP 401 Unauthorized.

    Attributes:
        auth_error: Short error tag for the ``WWW-Authenticate`` header.
    """

    error_code: str = "AUTHENTICATION_REQUIRED"

    def __init__(self, message: str, auth_error: str = "invalid_request") -> None:
        self.auth_error = auth_error
        super().__init__(message)


class AuthorizationError(DomainError):
    """Raised when an authenticated caller lacks the role for an operation.

    Maps to HTTP 403 Forbidden.

    Example:
        >>> raise AuthorizationError("Role 'coach' may not access module 'finance'")
    """

    error_code: str = "AUTHORIZATION_ERROR"


class AvailabilityError(DomainError):
    """Raised when a subdomain availability lookup fails.

    Recoverable: callers surface a retry prompt. Cancellation of a
    superseded lookup is never reported as this error.
    """

    error_code: str = "AVAILABILITY_CHECK_FAILED"

    def __init__(self, subdomain: str, reason: str) -> None:
        self.subdomain = subdomain
        self.reason = reason
        super().__init__(
            "Error checking availability. Please try again.",
            {"subdomain": subdomain, "reason": reason},
        )


class ProvisioningError(DomainError):
    """Base class for failures of the academy provisioning workflow.

    Attributes:
        phase: Workflow phase that failed (``identity``, ``tenant``,
            ``compensation``).
    """

    error_code: str = "PROVISIONING_FAILED"
    phase: str = "unknown"


class IdentityCreationFailedError(ProvisioningError):
    """Phase 1 failed: the admin identity could not be created.

    Nothing was created, so no compensation is required, unless
    ``outcome_unknown`` is set: the request timed out or the connection
    broke after it was sent, and the provider may have created the account.

    Attributes:
        email: The director's email.
        reason: Sanitized description of the identity-provider failure.
        outcome_unknown: True when the account may exist at the provider.
    """

    error_code: str = "IDENTITY_CREATION_FAILED"
    phase: str = "identity"

    def __init__(self, email: str, reason: str, *, outcome_unknown: bool = False) -> None:
        self.email = email
        self.reason = reason
        self.outcome_unknown = outcome_unknown
        super().__init__(
            f"Failed to create admin user: {reason}",
            {"phase": self.phase, "admin_email": email},
        )


class TenantCreationFailedError(ProvisioningError):
    """Phase 2 failed: the academy record could not be created.

    Raised only after the Phase-1 identity has been deleted.

    Attributes:
        identity_id: The identity created in Phase 1 (already deleted).
        reason: Sanitized description of the tenant-store failure.
    """

    error_code: str = "TENANT_CREATION_FAILED"
    phase: str = "tenant"

    def __init__(self, subdomain: str, identity_id: str, reason: str) -> None:
        self.subdomain = subdomain
        self.identity_id = identity_id
        self.reason = reason
        super().__init__(
            f"Failed to create academy: {reason}",
            {
                "phase": self.phase,
                "subdomain": subdomain,
                "identity_id": identity_id,
                "identity_deleted": True,
            },
        )


class SubdomainTakenError(TenantCreationFailedError):
    """Phase 2 hit the subdomain uniqueness constraint.

    The availability check is advisory; this is the authoritative verdict
    when another academy claimed the subdomain between check and create.
    """

    error_code: str = "SUBDOMAIN_TAKEN"

    def __init__(self, subdomain: str, identity_id: str) -> None:
        super().__init__(
            subdomain,
            identity_id,
            f"subdomain '{subdomain}' was taken before the academy could be created",
        )


class InconsistentStateError(ProvisioningError):
    """Phase 2 failed AND the compensating identity delete failed.

    An orphaned identity now exists. Requires manual intervention; never
    retried automatically.

    Attributes:
        identity_id: The orphaned identity id.
        tenant_error: Description of the tenant-creation failure.
        cleanup_error: Description of the failed compensating delete.
    """

    error_code: str = "INCONSISTENT_STATE"
    phase: str = "compensation"

    def __init__(
        self,
        subdomain: str,
        identity_id: str,
        tenant_error: str,
        cleanup_error: str,
    ) -> None:
        self.subdomain = subdomain
        self.identity_id = identity_id
        self.tenant_error = tenant_error
        self.cleanup_error = cleanup_error
        super().__init__(
            (
                f"Failed to create academy: {tenant_error}. "
                f"Cleanup of admin user {identity_id} also failed: {cleanup_error}. "
                "Manual intervention required."
            ),
            {
                "phase": self.phase,
                "subdomain": subdomain,
                "identity_id": identity_id,
                "tenant_error": tenant_error,
                "cleanup_error": cleanup_error,
            },
        )

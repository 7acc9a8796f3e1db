"""Port interface for the external identity provider.

The identity provider owns credentials and sessions. This system only
needs to create pre-confirmed accounts for academy directors, look them
up by email, and delete them when a provisioning attempt is rolled back.

Example:
    >>> async def ensure_absent(idp: IdentityProviderPort, email: str) -> None:
    ...     existing = await idp.find_user_by_email(email)
    ...     if existing is not None:
    ...         await idp.delete_user(existing.id)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects or fails a request.

    Attributes:
        error: Short machine-readable error code from the provider.
        message: Provider-supplied description. May contain transport
            details; log it, do not surface it to end users verbatim.
        status_code: HTTP status code, or None for transport failures.
    """

    def __init__(self, error: str, message: str, status_code: int | None = None) -> None:
        self.error = error
        self.message = message
        self.status_code = status_code
        super().__init__(f"{error}: {message}")

    @property
    def is_not_found(self) -> bool:
        """True when the provider reported the user as absent."""
        return self.status_code == 404


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    """An account as known to the identity provider."""

    id: str
    email: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class IdentityProviderPort(Protocol):
    """Port for identity provider administration.

    All methods are coroutines and raise :class:`IdentityProviderError`
    on failure.
    """

    async def create_user(
        self,
        email: str,
        password: str,
        *,
        email_confirmed: bool = True,
        metadata: Mapping[str, Any] | None = None,
    ) -> IdentityRecord:
        """Create an account.

        Args:
            email: Login email, unique within the provider.
            password: Initial password.
            email_confirmed: Skip the provider's confirmation email.
            metadata: User metadata stored alongside the account.

        Returns:
            The created account, including its provider-issued id.
        """
        ...

    async def delete_user(self, user_id: str) -> None:
        """Delete an account by provider id."""
        ...

    async def find_user_by_email(self, email: str) -> IdentityRecord | None:
        """Return the account registered under ``email``, if any."""
        ...

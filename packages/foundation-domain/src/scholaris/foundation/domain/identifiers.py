"""Identifier value objects for type-safe identifier handling.

Academies and profiles are keyed by UUIDs issued by the tenant store;
identities are keyed by ids issued by the identity provider. Wrapping them
keeps the two id spaces from being mixed up at call sites.

Example:
    >>> from uuid import UUID
    >>> AcademyId(UUID("550e8400-e29b-41d4-a716-446655440000"))
    AcademyId(value=UUID('550e8400-e29b-41d4-a716-446655440000'))
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AcademyId:
    """Academy (tenant) identifier wrapping UUID.

    Attributes:
        value: The wrapped UUID instance.
    """

    value: UUID

    @classmethod
    def parse(cls, raw: str) -> AcademyId:
        """Parse an academy id from its string form.

        Raises:
            ValueError: If ``raw`` is not a valid UUID.
        """
        return cls(UUID(raw))

    def __str__(self) -> str:
        """Return UUID string for serialization."""
        return str(self.value)


@dataclass(frozen=True)
class IdentityId:
    """Identity-provider user identifier.

    Opaque to this system; only required to be non-empty.

    Raises:
        ValueError: If value is empty.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            msg = "Identity id cannot be empty"
            raise ValueError(msg)

    def __str__(self) -> str:
        return self.value

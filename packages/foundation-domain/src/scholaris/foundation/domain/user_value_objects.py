"""Value objects for academy staff accounts.

Immutable, validated domain primitives. All validation occurs at construction.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Role(StrEnum):
    """Staff roles stored on the profile row.

    ``PLATFORM_ADMIN`` operates the platform itself and provisions academies;
    every other role belongs to exactly one academy.
    """

    DIRECTOR = "director"
    ADMIN = "admin"
    ACCOUNTING_CHIEF = "comptabilite_chief"
    COACH = "coach"
    PARENT = "parent"
    PLATFORM_ADMIN = "platform_admin"


@dataclass(frozen=True, slots=True)
class Email:
    """Validated email address value object.

    Attributes:
        value: The validated, lowercased email string.

    Raises:
        ValueError: If email is empty, malformed, or exceeds 255 chars.
    """

    value: str

    def __post_init__(self) -> None:
        normalized = self.value.strip().lower()
        if not normalized:
            msg = "Email cannot be empty"
            raise ValueError(msg)
        if len(normalized) > 255:
            msg = f"Email too long: {len(normalized)} chars (max 255)"
            raise ValueError(msg)
        if not _EMAIL_PATTERN.match(normalized):
            msg = f"Invalid email format: '{self.value}'"
            raise ValueError(msg)
        object.__setattr__(self, "value", normalized)


@dataclass(frozen=True, slots=True)
class FullName:
    """Validated full name of a staff member.

    Leading and trailing whitespace is automatically removed.

    Raises:
        ValueError: If the name is shorter than 3 chars or exceeds 255 chars.
    """

    value: str

    def __post_init__(self) -> None:
        stripped = self.value.strip()
        if len(stripped) < 3:
            msg = "Full name must be at least 3 characters"
            raise ValueError(msg)
        if len(stripped) > 255:
            msg = f"Full name too long: {len(stripped)} chars (max 255)"
            raise ValueError(msg)
        object.__setattr__(self, "value", stripped)


@dataclass(frozen=True, slots=True)
class Password:
    """Initial password for a provisioned account. Never rendered in repr.

    Raises:
        ValueError: If the password is shorter than 8 characters.
    """

    value: str = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.value) < 8:
            msg = "Password must be at least 8 characters"
            raise ValueError(msg)

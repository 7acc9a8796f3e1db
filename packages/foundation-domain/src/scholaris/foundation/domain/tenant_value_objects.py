"""Value objects for academies (tenants).

Immutable, validated domain primitives. All validation occurs at
construction time. :func:`validate_subdomain` is the single source of the
subdomain rules; both the availability checker and the HTTP boundary call it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

MIN_SUBDOMAIN_LENGTH = 3
MAX_SUBDOMAIN_LENGTH = 63  # one DNS label

RESERVED_SUBDOMAINS: frozenset[str] = frozenset(
    {"www", "api", "admin", "app", "mail", "ftp", "cdn", "blog", "shop"}
)

_SUBDOMAIN_PATTERN = re.compile(r"[a-z0-9]([a-z0-9-]*[a-z0-9])?")


class SubdomainVerdict(StrEnum):
    """Outcome of validating a subdomain candidate.

    ``INCOMPLETE`` is not an error: the input is too short to judge yet.
    """

    INCOMPLETE = "incomplete"
    VALID = "valid"
    BAD_FORMAT = "bad-format"
    RESERVED = "reserved"

    @property
    def message(self) -> str:
        """Human-readable explanation shown next to the input."""
        return _VERDICT_MESSAGES[self]


_VERDICT_MESSAGES = {
    SubdomainVerdict.INCOMPLETE: "",
    SubdomainVerdict.VALID: "",
    SubdomainVerdict.BAD_FORMAT: (
        "Invalid format: use only lowercase letters, numbers, and hyphens"
    ),
    SubdomainVerdict.RESERVED: "This subdomain is reserved",
}


def validate_subdomain(candidate: str) -> SubdomainVerdict:
    """Validate a subdomain candidate without any I/O.

    Rules are applied in order: length, format, reserved words.

    Args:
        candidate: Raw user input.

    Returns:
        The verdict for the candidate.

    Example:
        >>> validate_subdomain("ab")
        <SubdomainVerdict.INCOMPLETE: 'incomplete'>
        >>> validate_subdomain("Test_1")
        <SubdomainVerdict.BAD_FORMAT: 'bad-format'>
        >>> validate_subdomain("admin")
        <SubdomainVerdict.RESERVED: 'reserved'>
    """
    if len(candidate) < MIN_SUBDOMAIN_LENGTH:
        return SubdomainVerdict.INCOMPLETE
    if len(candidate) > MAX_SUBDOMAIN_LENGTH or not _SUBDOMAIN_PATTERN.fullmatch(candidate):
        return SubdomainVerdict.BAD_FORMAT
    if candidate in RESERVED_SUBDOMAINS:
        return SubdomainVerdict.RESERVED
    return SubdomainVerdict.VALID


@dataclass(frozen=True, slots=True)
class Subdomain:
    """Validated academy subdomain (immutable after creation).

    Attributes:
        value: The validated subdomain string.

    Raises:
        ValueError: If the candidate is incomplete, malformed or reserved.
    """

    value: str

    def __post_init__(self) -> None:
        verdict = validate_subdomain(self.value)
        if verdict is SubdomainVerdict.INCOMPLETE:
            msg = (
                f"Subdomain too short: '{self.value}' "
                f"(min {MIN_SUBDOMAIN_LENGTH} chars)"
            )
            raise ValueError(msg)
        if verdict is not SubdomainVerdict.VALID:
            msg = f"Invalid subdomain '{self.value}': {verdict.message}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AcademyName:
    """Validated academy display name.

    Attributes:
        value: The validated name string (3-255 chars, unicode OK).

    Raises:
        ValueError: If name is too short or exceeds 255 chars.
    """

    value: str

    def __post_init__(self) -> None:
        stripped = self.value.strip()
        if len(stripped) < 3:
            msg = "Academy name must be at least 3 characters"
            raise ValueError(msg)
        if len(stripped) > 255:
            msg = f"Academy name too long: {len(stripped)} chars (max 255)"
            raise ValueError(msg)
        object.__setattr__(self, "value", stripped)

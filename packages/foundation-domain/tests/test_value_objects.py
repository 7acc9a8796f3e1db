"""Tests for academy and staff value objects."""

from __future__ import annotations

import pytest

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

# =============================================================================
# Subdomain validation
# =============================================================================


@pytest.mark.unit
class TestValidateSubdomain:
    """Tests for the pure subdomain validator."""

    @pytest.mark.parametrize("candidate", ["", "a", "ab"])
    def test_short_input_is_incomplete(self, candidate: str) -> None:
        assert validate_subdomain(candidate) is SubdomainVerdict.INCOMPLETE

    @pytest.mark.parametrize("candidate", ["abc", "my-academy", "club-2024", "a1b"])
    def test_valid(self, candidate: str) -> None:
        assert validate_subdomain(candidate) is SubdomainVerdict.VALID

    @pytest.mark.parametrize(
        "candidate",
        ["Test_1", "-abc", "abc-", "ab c", "ACME", "acadé", "a.b.c"],
    )
    def test_bad_format(self, candidate: str) -> None:
        assert validate_subdomain(candidate) is SubdomainVerdict.BAD_FORMAT

    @pytest.mark.parametrize("candidate", ["abc\n", "www\n", "ab-\n", "abc\r\n", "\nabc"])
    def test_surrounding_newline_is_bad_format(self, candidate: str) -> None:
        assert validate_subdomain(candidate) is SubdomainVerdict.BAD_FORMAT

    def test_reserved_word_with_trailing_newline_is_not_valid(self) -> None:
        assert validate_subdomain("www\n") is not SubdomainVerdict.VALID
        with pytest.raises(ValueError, match="Invalid subdomain"):
            Subdomain("www\n")

    @pytest.mark.parametrize("candidate", sorted(RESERVED_SUBDOMAINS))
    def test_reserved(self, candidate: str) -> None:
        assert validate_subdomain(candidate) is SubdomainVerdict.RESERVED

    def test_length_checked_before_format(self) -> None:
        assert validate_subdomain("A_") is SubdomainVerdict.INCOMPLETE

    def test_format_checked_before_reserved(self) -> None:
        assert validate_subdomain("WWW") is SubdomainVerdict.BAD_FORMAT

    def test_max_length(self) -> None:
        assert validate_subdomain("a" * 63) is SubdomainVerdict.VALID
        assert validate_subdomain("a" * 64) is SubdomainVerdict.BAD_FORMAT

    def test_messages(self) -> None:
        assert SubdomainVerdict.RESERVED.message == "This subdomain is reserved"
        assert SubdomainVerdict.BAD_FORMAT.message.startswith("Invalid format")
        assert SubdomainVerdict.VALID.message == ""


@pytest.mark.unit
class TestSubdomain:
    """Tests for Subdomain value object."""

    def test_valid(self) -> None:
        assert Subdomain("test-academy").value == "test-academy"
        assert str(Subdomain("test-academy")) == "test-academy"

    def test_rejects_too_short(self) -> None:
        with pytest.raises(ValueError, match="too short"):
            Subdomain("ab")

    def test_rejects_bad_format(self) -> None:
        with pytest.raises(ValueError, match="Invalid format"):
            Subdomain("Test_1")

    def test_rejects_reserved(self) -> None:
        with pytest.raises(ValueError, match="reserved"):
            Subdomain("admin")

    def test_frozen(self) -> None:
        sub = Subdomain("acme")
        with pytest.raises(AttributeError):
            sub.value = "other"  # type: ignore[misc]


@pytest.mark.unit
class TestAcademyName:
    """Tests for AcademyName value object."""

    def test_strips_whitespace(self) -> None:
        assert AcademyName("  Test Academy  ").value == "Test Academy"

    def test_unicode(self) -> None:
        assert AcademyName("Académie Étoile").value == "Académie Étoile"

    def test_rejects_too_short(self) -> None:
        with pytest.raises(ValueError, match="at least 3"):
            AcademyName(" ab ")

    def test_rejects_too_long(self) -> None:
        with pytest.raises(ValueError, match="too long"):
            AcademyName("x" * 256)


# =============================================================================
# Staff value objects
# =============================================================================


@pytest.mark.unit
class TestEmail:
    """Tests for Email value object."""

    def test_normalizes(self) -> None:
        assert Email("  Admin@Test.COM ").value == "admin@test.com"

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValueError, match="cannot be empty"):
            Email("   ")

    def test_rejects_malformed(self) -> None:
        with pytest.raises(ValueError, match="Invalid email"):
            Email("not-an-email")


@pytest.mark.unit
class TestFullName:
    """Tests for FullName value object."""

    def test_valid(self) -> None:
        assert FullName(" Jane Doe ").value == "Jane Doe"

    def test_rejects_too_short(self) -> None:
        with pytest.raises(ValueError, match="at least 3"):
            FullName("Jo")


@pytest.mark.unit
class TestPassword:
    """Tests for Password value object."""

    def test_valid(self) -> None:
        assert Password("s3cret-pass").value == "s3cret-pass"

    def test_hidden_from_repr(self) -> None:
        assert "s3cret-pass" not in repr(Password("s3cret-pass"))

    def test_rejects_short(self) -> None:
        with pytest.raises(ValueError, match="at least 8"):
            Password("short")


@pytest.mark.unit
class TestRole:
    """Tests for Role enum."""

    def test_wire_values(self) -> None:
        assert Role.DIRECTOR == "director"
        assert Role.ACCOUNTING_CHIEF == "comptabilite_chief"
        assert Role("platform_admin") is Role.PLATFORM_ADMIN

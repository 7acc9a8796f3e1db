"""Tests for identifier value objects."""

from __future__ import annotations

from uuid import UUID

import pytest

from scholaris.foundation.domain.identifiers import AcademyId, IdentityId

_RAW = "550e8400-e29b-41d4-a716-446655440000"


@pytest.mark.unit
class TestAcademyId:
    """Tests for AcademyId value object."""

    def test_wraps_uuid(self) -> None:
        aid = AcademyId(UUID(_RAW))
        assert aid.value == UUID(_RAW)
        assert str(aid) == _RAW

    def test_parse(self) -> None:
        assert AcademyId.parse(_RAW) == AcademyId(UUID(_RAW))

    def test_parse_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            AcademyId.parse("not-a-uuid")

    def test_hashable(self) -> None:
        assert len({AcademyId(UUID(_RAW)), AcademyId.parse(_RAW)}) == 1


@pytest.mark.unit
class TestIdentityId:
    """Tests for IdentityId value object."""

    def test_valid(self) -> None:
        assert str(IdentityId("user-1")) == "user-1"

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValueError, match="cannot be empty"):
            IdentityId("")

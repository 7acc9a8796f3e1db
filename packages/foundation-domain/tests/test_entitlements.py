"""Tests for the module entitlement gate."""

from __future__ import annotations

import pytest

from scholaris.foundation.domain.entitlements import (
    ALWAYS_VISIBLE,
    MODULE_ROLES,
    ModuleName,
    is_visible,
    visible_modules,
)
from scholaris.foundation.domain.user_value_objects import Role

_ALL_ROLES = [str(r) for r in Role]


@pytest.mark.unit
class TestIsVisible:
    @pytest.mark.parametrize("role", _ALL_ROLES)
    @pytest.mark.parametrize("module", sorted(ALWAYS_VISIBLE))
    def test_always_visible_modules(self, module: str, role: str) -> None:
        assert is_visible(module, role, {})

    def test_finance_hidden_from_coach_even_when_enabled(self) -> None:
        assert not is_visible("finance", "coach", {"finance": True})

    def test_finance_visible_to_accounting_chief(self) -> None:
        assert is_visible("finance", "comptabilite_chief", {"finance": True})

    def test_students_hidden_when_disabled_even_for_director(self) -> None:
        assert not is_visible("students", "director", {"students": False})

    def test_absent_key_is_disabled(self) -> None:
        assert not is_visible("students", "director", {})

    def test_only_literal_true_enables(self) -> None:
        assert not is_visible("students", "director", {"students": "yes"})
        assert not is_visible("students", "director", {"students": 1})

    def test_unknown_module_never_visible(self) -> None:
        assert not is_visible("chess", "director", {"chess": True})

    def test_unknown_role_only_sees_always_visible(self) -> None:
        config = {m: True for m in MODULE_ROLES}
        assert visible_modules("janitor", config) == ["dashboard", "settings"]

    @pytest.mark.parametrize("role", _ALL_ROLES)
    @pytest.mark.parametrize("module", list(MODULE_ROLES))
    def test_requires_role_and_flag(self, module: str, role: str) -> None:
        entitled = role in MODULE_ROLES[module]
        assert is_visible(module, role, {module: True}) is entitled
        assert is_visible(module, role, {module: False}) is False


@pytest.mark.unit
class TestVisibleModules:
    def test_catalog_order(self) -> None:
        result = visible_modules("director", {"students": True, "finance": True})
        assert result == ["dashboard", "settings", "students", "finance"]

    def test_unknown_config_keys_are_inert(self) -> None:
        result = visible_modules("director", {"chess": True})
        assert result == [ModuleName.DASHBOARD, ModuleName.SETTINGS]

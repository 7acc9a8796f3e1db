"""Module entitlement gate.

One rule table decides whether a feature module is visible to a caller,
combining the academy's enabled-module configuration with the caller's role.
Dashboard navigation and server-side access checks both consult
:func:`is_visible`.

Example:
    >>> is_visible("dashboard", "coach", {})
    True
    >>> is_visible("finance", "coach", {"finance": True})
    False
    >>> is_visible("finance", "director", {"finance": True})
    True
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from scholaris.foundation.domain.user_value_objects import Role

if TYPE_CHECKING:
    from collections.abc import Mapping


class ModuleName(StrEnum):
    """Catalog of dashboard feature modules."""

    DASHBOARD = "dashboard"
    SETTINGS = "settings"
    REGISTRATIONS = "registrations"
    STUDENTS = "students"
    USERS = "users"
    ATTENDANCE = "attendance"
    COACHES = "coaches"
    FINANCE = "finance"
    REPORTS = "reports"
    DOCUMENTS = "documents"
    SCHEDULE = "schedule"
    MESSAGES = "messages"
    GALLERY = "gallery"
    WEBSITE = "website"


ALWAYS_VISIBLE: frozenset[str] = frozenset({ModuleName.DASHBOARD, ModuleName.SETTINGS})

_MANAGERS = frozenset({Role.DIRECTOR, Role.ADMIN})
_TEACHING = _MANAGERS | {Role.COACH}
_FINANCE = frozenset({Role.DIRECTOR, Role.ACCOUNTING_CHIEF})

MODULE_ROLES: Mapping[str, frozenset[str]] = {
    ModuleName.REGISTRATIONS: _TEACHING,
    ModuleName.STUDENTS: _TEACHING,
    ModuleName.USERS: _MANAGERS,
    ModuleName.ATTENDANCE: _TEACHING,
    ModuleName.COACHES: _MANAGERS,
    ModuleName.FINANCE: _FINANCE,
    ModuleName.REPORTS: _FINANCE,
    ModuleName.DOCUMENTS: _FINANCE | {Role.COACH},
    ModuleName.SCHEDULE: _TEACHING,
    ModuleName.MESSAGES: _TEACHING | {Role.PARENT},
    ModuleName.GALLERY: _MANAGERS,
    ModuleName.WEBSITE: _MANAGERS,
}

# Modules an academy may switch on or off; the rest are always present.
CONFIGURABLE_MODULES: tuple[str, ...] = tuple(MODULE_ROLES)


def is_role_entitled(module: str, role: str) -> bool:
    """Return True if ``role`` may use ``module`` regardless of configuration."""
    if module in ALWAYS_VISIBLE:
        return True
    return role in MODULE_ROLES.get(module, frozenset())


def is_module_enabled(module: str, modules_config: Mapping[str, object]) -> bool:
    """Return True only for an explicit ``True`` flag. Absent keys are disabled."""
    return modules_config.get(module) is True


def is_visible(module: str, role: str, modules_config: Mapping[str, object]) -> bool:
    """Decide whether ``module`` is visible to ``role`` in an academy.

    Args:
        module: Module name from :class:`ModuleName` (unknown names are never visible).
        role: Caller's role tag.
        modules_config: The academy's ``modules`` mapping.

    Returns:
        True for always-visible modules, otherwise role entitlement AND
        the module's enabled flag.
    """
    if module in ALWAYS_VISIBLE:
        return True
    return is_role_entitled(module, role) and is_module_enabled(module, modules_config)


def visible_modules(role: str, modules_config: Mapping[str, object]) -> list[str]:
    """List visible modules for a caller in catalog order."""
    return [str(m) for m in ModuleName if is_visible(m, role, modules_config)]

"""Role and department enumerations shared across the kernel."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles. A user holds exactly one."""

    USER = "USER"
    HOD = "HOD"
    TRANSPORT_OFFICER = "TRANSPORT_OFFICER"
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"


class Department(str, Enum):
    """Academic / administrative departments."""

    CSE = "CSE"
    EEE = "EEE"
    CEE = "CEE"
    MPE = "MPE"
    GENERAL = "GENERAL"


ALL_ROLES: frozenset[str] = frozenset(r.value for r in Role)


def role_value(role: Enum | str) -> str:
    """Normalize a Role (or Department) or its string value to the string value.

    Strings are matched case-insensitively: ``" hod "`` and ``"HOD"`` are
    the same role.
    """
    return role.value if isinstance(role, Enum) else str(role).strip().upper()

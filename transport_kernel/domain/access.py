"""
Access and assignment policy values.

Plain data consumed by ``transport_engines.access`` and
``transport_engines.assignment``.  Defaults mirror the shipped
``default`` configuration set so the kernel runs without configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from transport_kernel.domain.roles import Role


@dataclass(frozen=True)
class AccessPolicy:
    """Which roles may list, update, delete and assign requisitions."""

    # See every requisition regardless of department.
    list_all_roles: tuple[str, ...] = (Role.ADMIN.value, Role.TRANSPORT_OFFICER.value)
    # See requisitions whose requester shares the caller's department.
    department_scoped_roles: tuple[str, ...] = (Role.HOD.value,)
    # Update a requisition in any status.
    update_any_roles: tuple[str, ...] = (Role.ADMIN.value, Role.TRANSPORT_OFFICER.value)
    # Delete a requisition in any status.
    delete_any_roles: tuple[str, ...] = (Role.ADMIN.value,)
    # Bind a vehicle and driver to an approved requisition.
    assign_roles: tuple[str, ...] = (Role.ADMIN.value, Role.TRANSPORT_OFFICER.value)


@dataclass(frozen=True)
class AssignmentPolicy:
    """Double-booking rule for vehicles and drivers.

    Two APPROVED requisitions sharing a vehicle or driver conflict when their
    required times are less than ``conflict_window_minutes`` apart.  A window
    of 0 disables the check.
    """

    conflict_window_minutes: int = 240

    def __post_init__(self) -> None:
        if self.conflict_window_minutes < 0:
            raise ValueError(
                f"conflict_window_minutes must be >= 0, got {self.conflict_window_minutes}"
            )

    @property
    def enabled(self) -> bool:
        return self.conflict_window_minutes > 0

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.conflict_window_minutes)

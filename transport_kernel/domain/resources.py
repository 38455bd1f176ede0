"""
Resource DTOs -- users, vehicles, drivers and the bookings that hold them.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.  Models convert to
    these via ``to_dto()``; services return them, never ORM instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class VehicleStatus(str, Enum):
    ACTIVE = "ACTIVE"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"
    INACTIVE = "INACTIVE"


class DriverStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    INACTIVE = "INACTIVE"


@dataclass(frozen=True)
class UserSummary:
    """The public face of a user: no credentials, no timestamps."""

    id: UUID
    name: str
    email: str
    role: str
    department: str | None = None
    designation: str | None = None
    contact_number: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class VehicleSummary:
    id: UUID
    registration_number: str
    vehicle_type: str
    capacity: int
    status: VehicleStatus
    created_at: datetime | None = None

    @property
    def is_available(self) -> bool:
        return self.status == VehicleStatus.ACTIVE


@dataclass(frozen=True)
class DriverSummary:
    id: UUID
    user: UserSummary
    license_number: str
    status: DriverStatus
    created_at: datetime | None = None

    @property
    def is_available(self) -> bool:
        return self.status == DriverStatus.ACTIVE


@dataclass(frozen=True)
class Booking:
    """A time slot that holds a vehicle or driver.

    ``kind`` is ``"requisition"`` for an APPROVED requisition or ``"trip"``
    for a SCHEDULED trip.
    """

    kind: str
    id: UUID
    required_at: datetime

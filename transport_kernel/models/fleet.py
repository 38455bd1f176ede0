"""
Module: transport_kernel.models.fleet
Responsibility: ORM persistence for vehicles and drivers, the two resources
    bound to an approved requisition.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models.

Invariants enforced:
    - registration_number is unique per vehicle.
    - license_number is unique per driver; a user backs at most one driver.
    - capacity >= 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from transport_kernel.db.base import TrackedBase, UUIDString
from transport_kernel.domain.clock import as_utc
from transport_kernel.models.user import User

if TYPE_CHECKING:
    from transport_kernel.domain.resources import DriverSummary, VehicleSummary


class Vehicle(TrackedBase):
    """A vehicle in the fleet."""

    __tablename__ = "vehicles"

    __table_args__ = (
        UniqueConstraint("registration_number", name="uq_vehicles_registration"),
        CheckConstraint("capacity >= 1", name="ck_vehicles_capacity_positive"),
        CheckConstraint(
            "status IN ('ACTIVE', 'UNDER_MAINTENANCE', 'INACTIVE')",
            name="ck_vehicles_valid_status",
        ),
    )

    registration_number: Mapped[str] = mapped_column(String(64), nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String(64), nullable=False)
    capacity: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="ACTIVE")

    def __repr__(self) -> str:
        return f"<Vehicle {self.registration_number} status={self.status}>"

    def to_dto(self) -> VehicleSummary:
        from transport_kernel.domain.resources import VehicleStatus, VehicleSummary

        return VehicleSummary(
            id=self.id,
            registration_number=self.registration_number,
            vehicle_type=self.vehicle_type,
            capacity=self.capacity,
            status=VehicleStatus(self.status),
            created_at=as_utc(self.created_at),
        )


class Driver(TrackedBase):
    """A driver. Always backed by a user account with role DRIVER."""

    __tablename__ = "drivers"

    __table_args__ = (
        UniqueConstraint("license_number", name="uq_drivers_license"),
        UniqueConstraint("user_id", name="uq_drivers_user"),
        CheckConstraint(
            "status IN ('ACTIVE', 'ON_LEAVE', 'INACTIVE')",
            name="ck_drivers_valid_status",
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    license_number: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="ACTIVE")

    user: Mapped[User] = relationship(User, lazy="selectin")

    def __repr__(self) -> str:
        return f"<Driver {self.license_number} status={self.status}>"

    def to_dto(self) -> DriverSummary:
        from transport_kernel.domain.resources import DriverStatus, DriverSummary

        return DriverSummary(
            id=self.id,
            user=self.user.to_dto(),
            license_number=self.license_number,
            status=DriverStatus(self.status),
            created_at=as_utc(self.created_at),
        )

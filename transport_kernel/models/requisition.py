"""
Module: transport_kernel.models.requisition
Responsibility: ORM persistence for transport requisitions.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models.

Invariants enforced:
    - status is PENDING, APPROVED or REJECTED (ck_requisitions_valid_status).
    - passenger_count >= 1 (ck_requisitions_passengers_positive).
    - A requisition owns its approvals: deleting it deletes them
      (ORM cascade plus ON DELETE CASCADE on the foreign key).

Not enforced here:
    - APPROVED only after every stage approved; that is the approval
      service's job.
    - Assignment only while APPROVED; that is the workflow's job.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from transport_kernel.db.base import TrackedBase, UUIDString
from transport_kernel.domain.clock import as_utc
from transport_kernel.models.fleet import Driver, Vehicle
from transport_kernel.models.user import User

if TYPE_CHECKING:
    from transport_kernel.domain.requisition import RequisitionDetail, RequisitionInfo
    from transport_kernel.models.approval import Approval


class Requisition(TrackedBase):
    """A request for a vehicle and driver, moving through approval stages."""

    __tablename__ = "requisitions"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="ck_requisitions_valid_status",
        ),
        CheckConstraint(
            "passenger_count >= 1",
            name="ck_requisitions_passengers_positive",
        ),
        Index("ix_requisitions_requester_created", "requester_id", "created_at"),
        # Conflict window lookups on assignment
        Index("ix_requisitions_vehicle_required", "vehicle_id", "required_at"),
        Index("ix_requisitions_driver_required", "driver_id", "required_at"),
    )

    requester_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    places_to_visit: Mapped[str] = mapped_column(Text, nullable=False)
    place_to_pickup: Mapped[str] = mapped_column(String(500), nullable=False)
    passenger_count: Mapped[int] = mapped_column(nullable=False)
    required_at: Mapped[datetime] = mapped_column(nullable=False)
    contact_number: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")
    vehicle_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("vehicles.id"), nullable=True,
    )
    driver_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("drivers.id"), nullable=True,
    )

    requester: Mapped[User] = relationship(User, lazy="selectin")
    vehicle: Mapped[Vehicle | None] = relationship(Vehicle, lazy="selectin")
    driver: Mapped[Driver | None] = relationship(Driver, lazy="selectin")
    approvals: Mapped[list[Approval]] = relationship(
        "Approval",
        back_populates="requisition",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[Approval.created_at, Approval.stage_index]",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Requisition {self.id} status={self.status}>"

    def to_dto(self) -> RequisitionInfo:
        from transport_kernel.domain.approval import RequestStatus
        from transport_kernel.domain.requisition import RequisitionInfo

        return RequisitionInfo(
            id=self.id,
            requester_id=self.requester_id,
            purpose=self.purpose,
            places_to_visit=self.places_to_visit,
            place_to_pickup=self.place_to_pickup,
            passenger_count=self.passenger_count,
            required_at=as_utc(self.required_at),
            contact_number=self.contact_number,
            status=RequestStatus(self.status),
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
            vehicle_id=self.vehicle_id,
            driver_id=self.driver_id,
        )

    def to_detail(self) -> RequisitionDetail:
        """Full view: requester, ordered approval history, resources."""
        from transport_kernel.domain.requisition import RequisitionDetail

        return RequisitionDetail(
            requisition=self.to_dto(),
            requester=self.requester.to_dto(),
            approvals=tuple(a.to_dto() for a in self.approvals),
            vehicle=self.vehicle.to_dto() if self.vehicle is not None else None,
            driver=self.driver.to_dto() if self.driver is not None else None,
        )

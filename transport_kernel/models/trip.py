"""
Module: transport_kernel.models.trip
Responsibility: ORM persistence for scheduled trips and the tickets booked
    on them.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models.

Invariants enforced:
    - Trip status is SCHEDULED, COMPLETED or CANCELLED (ck_trips_valid_status).
    - available_seats >= 0 (ck_trips_seats_non_negative).
    - Ticket status is CONFIRMED or CANCELLED (ck_tickets_valid_status).
    - fare >= 0 (ck_tickets_fare_non_negative).
    - At most one CONFIRMED ticket per (trip, user): partial unique index
      ix_tickets_one_confirmed.
    - A trip owns its tickets: deleting it deletes them.

Not enforced here:
    - Seat accounting and the ACTIVE-resource / conflict-window rules;
      those belong to the ticket service and the trip scheduler.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from transport_kernel.db.base import Base, TrackedBase, UUIDString, utc_now
from transport_kernel.domain.clock import as_utc
from transport_kernel.models.fleet import Driver, Vehicle
from transport_kernel.models.user import User

if TYPE_CHECKING:
    from transport_kernel.domain.trip import TicketInfo, TripDetail, TripInfo


class Trip(TrackedBase):
    """A scheduled run of a vehicle and driver along a route."""

    __tablename__ = "trips"

    __table_args__ = (
        CheckConstraint(
            "status IN ('SCHEDULED', 'COMPLETED', 'CANCELLED')",
            name="ck_trips_valid_status",
        ),
        CheckConstraint("available_seats >= 0", name="ck_trips_seats_non_negative"),
        # Conflict window lookups
        Index("ix_trips_vehicle_scheduled", "vehicle_id", "scheduled_at"),
        Index("ix_trips_driver_scheduled", "driver_id", "scheduled_at"),
    )

    route: Mapped[str] = mapped_column(String(200), nullable=False)
    vehicle_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("vehicles.id"), nullable=False,
    )
    driver_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("drivers.id"), nullable=False,
    )
    scheduled_at: Mapped[datetime] = mapped_column(nullable=False)
    available_seats: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="SCHEDULED")

    vehicle: Mapped[Vehicle] = relationship(Vehicle, lazy="selectin")
    driver: Mapped[Driver] = relationship(Driver, lazy="selectin")
    tickets: Mapped[list[Ticket]] = relationship(
        "Ticket",
        back_populates="trip",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[Ticket.booked_at, Ticket.id]",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Trip {self.id} route={self.route!r} status={self.status}>"

    def to_dto(self) -> TripInfo:
        from transport_kernel.domain.trip import TripInfo, TripStatus

        return TripInfo(
            id=self.id,
            route=self.route,
            vehicle_id=self.vehicle_id,
            driver_id=self.driver_id,
            scheduled_at=as_utc(self.scheduled_at),
            available_seats=self.available_seats,
            status=TripStatus(self.status),
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )

    def to_detail(self) -> TripDetail:
        from transport_kernel.domain.trip import TripDetail

        return TripDetail(
            trip=self.to_dto(),
            vehicle=self.vehicle.to_dto(),
            driver=self.driver.to_dto(),
            tickets=tuple(t.to_dto() for t in self.tickets),
        )


class Ticket(Base):
    """One passenger seat on a trip."""

    __tablename__ = "tickets"

    __table_args__ = (
        CheckConstraint(
            "status IN ('CONFIRMED', 'CANCELLED')",
            name="ck_tickets_valid_status",
        ),
        CheckConstraint("fare >= 0", name="ck_tickets_fare_non_negative"),
        Index(
            "ix_tickets_one_confirmed",
            "trip_id", "user_id",
            unique=True,
            postgresql_where=text("status = 'CONFIRMED'"),
            sqlite_where=text("status = 'CONFIRMED'"),
        ),
        Index("ix_tickets_user_booked", "user_id", "booked_at"),
    )

    trip_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    fare: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="CONFIRMED")
    booked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    trip: Mapped[Trip] = relationship(Trip, back_populates="tickets")
    user: Mapped[User] = relationship(User, lazy="selectin")

    def __repr__(self) -> str:
        return f"<Ticket {self.id} trip={self.trip_id} status={self.status}>"

    def to_dto(self) -> TicketInfo:
        from transport_kernel.domain.trip import TicketInfo, TicketStatus

        return TicketInfo(
            id=self.id,
            trip_id=self.trip_id,
            user_id=self.user_id,
            fare=Decimal(self.fare),
            status=TicketStatus(self.status),
            booked_at=as_utc(self.booked_at),
            cancelled_at=as_utc(self.cancelled_at),
        )

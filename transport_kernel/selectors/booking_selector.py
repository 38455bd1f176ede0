"""
Module: transport_kernel.selectors.booking_selector
Responsibility: Loads the bookings that hold a vehicle or driver inside a
    time range: APPROVED requisitions and SCHEDULED trips.  Feeds the
    double-booking rule in ``transport_engines.assignment``.
Architecture position: Kernel > Selectors.

The caller supplies the range (``conflict_bounds``); bounds are inclusive
and the engine applies the exact strict-window rule.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from transport_kernel.domain.approval import RequestStatus
from transport_kernel.domain.clock import as_utc
from transport_kernel.domain.resources import Booking
from transport_kernel.domain.trip import TripStatus
from transport_kernel.models.requisition import Requisition
from transport_kernel.models.trip import Trip
from transport_kernel.selectors.base import BaseSelector


class BookingSelector(BaseSelector[Requisition]):
    """Vehicle and driver bookings across requisitions and trips."""

    def bookings(
        self,
        *,
        start: datetime,
        end: datetime,
        vehicle_id: UUID | None = None,
        driver_id: UUID | None = None,
        exclude_requisition_id: UUID | None = None,
        exclude_trip_id: UUID | None = None,
    ) -> list[Booking]:
        """Bookings of this vehicle or driver in ``[start, end]``, by time then id."""
        req_stmt = select(Requisition.id, Requisition.required_at).where(
            Requisition.status == RequestStatus.APPROVED.value,
            Requisition.required_at >= start,
            Requisition.required_at <= end,
        )
        trip_stmt = select(Trip.id, Trip.scheduled_at).where(
            Trip.status == TripStatus.SCHEDULED.value,
            Trip.scheduled_at >= start,
            Trip.scheduled_at <= end,
        )
        if vehicle_id is not None:
            req_stmt = req_stmt.where(Requisition.vehicle_id == vehicle_id)
            trip_stmt = trip_stmt.where(Trip.vehicle_id == vehicle_id)
        if driver_id is not None:
            req_stmt = req_stmt.where(Requisition.driver_id == driver_id)
            trip_stmt = trip_stmt.where(Trip.driver_id == driver_id)
        if exclude_requisition_id is not None:
            req_stmt = req_stmt.where(Requisition.id != exclude_requisition_id)
        if exclude_trip_id is not None:
            trip_stmt = trip_stmt.where(Trip.id != exclude_trip_id)

        found = [
            Booking(kind="requisition", id=row.id, required_at=as_utc(row.required_at))
            for row in self.session.execute(req_stmt)
        ]
        found.extend(
            Booking(kind="trip", id=row.id, required_at=as_utc(row.scheduled_at))
            for row in self.session.execute(trip_stmt)
        )
        return sorted(found, key=lambda b: (b.required_at, str(b.id)))

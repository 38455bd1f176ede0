"""
Module: transport_kernel.selectors.trip_selector
Responsibility: Read-only queries over trips and tickets.
Architecture position: Kernel > Selectors.

Ordering:
    Trips default to soonest first (scheduled_at ASC); tickets to most
    recently booked first.  Ties break on id.
"""

from __future__ import annotations

from sqlalchemy import select

from transport_kernel.domain.trip import (
    TicketInfo,
    TicketSearch,
    TripDetail,
    TripSearch,
    day_bounds,
)
from transport_kernel.models.trip import Ticket, Trip
from transport_kernel.selectors.base import BaseSelector


class TripSelector(BaseSelector[Trip]):
    """Selector for trip and ticket queries."""

    def all_trips(self) -> list[TripDetail]:
        rows = self.session.execute(
            select(Trip).order_by(Trip.scheduled_at, Trip.id)
        ).scalars().all()
        return [row.to_detail() for row in rows]

    def search_trips(self, filters: TripSearch) -> list[TripDetail]:
        stmt = select(Trip)
        if filters.route:
            stmt = stmt.where(Trip.route.icontains(filters.route, autoescape=True))
        if filters.vehicle_id is not None:
            stmt = stmt.where(Trip.vehicle_id == filters.vehicle_id)
        if filters.driver_id is not None:
            stmt = stmt.where(Trip.driver_id == filters.driver_id)
        if filters.status is not None:
            stmt = stmt.where(Trip.status == filters.status.value)

        day = day_bounds(filters.scheduled_on)
        if day is not None:
            start, end = day
            stmt = stmt.where(Trip.scheduled_at >= start, Trip.scheduled_at < end)

        column = getattr(Trip, filters.sort_by)
        ordering = column.asc() if filters.sort_order == "asc" else column.desc()
        rows = self.session.execute(stmt.order_by(ordering, Trip.id)).scalars().all()
        return [row.to_detail() for row in rows]

    def all_tickets(self) -> list[TicketInfo]:
        return self.search_tickets(TicketSearch())

    def search_tickets(self, filters: TicketSearch) -> list[TicketInfo]:
        stmt = select(Ticket)
        if filters.trip_id is not None:
            stmt = stmt.where(Ticket.trip_id == filters.trip_id)
        if filters.user_id is not None:
            stmt = stmt.where(Ticket.user_id == filters.user_id)
        if filters.status is not None:
            stmt = stmt.where(Ticket.status == filters.status.value)

        day = day_bounds(filters.booked_on)
        if day is not None:
            start, end = day
            stmt = stmt.where(Ticket.booked_at >= start, Ticket.booked_at < end)

        column = getattr(Ticket, filters.sort_by)
        ordering = column.asc() if filters.sort_order == "asc" else column.desc()
        rows = self.session.execute(stmt.order_by(ordering, Ticket.id)).scalars().all()
        return [row.to_dto() for row in rows]

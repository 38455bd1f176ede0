"""
TicketService -- seat booking on scheduled trips.

Responsibility:
    Books, cancels and deletes tickets while keeping the trip's
    ``available_seats`` counter consistent with its CONFIRMED tickets.

Architecture position:
    Kernel > Services.  Flush-only; the caller owns the transaction.

Invariants enforced:
    - Tickets are booked only on SCHEDULED trips with a seat left.  The
      trip row is locked FOR UPDATE so concurrent bookings cannot oversell.
    - A user holds at most one CONFIRMED ticket per trip (checked here and
      by the partial unique index ix_tickets_one_confirmed).
    - Every CONFIRMED ticket holds exactly one seat: booking takes one,
      cancelling or deleting a CONFIRMED ticket gives it back.
    - Cancellation is one-way; a CANCELLED ticket is never re-confirmed.

Failure modes:
    - TripNotFoundError, UserNotFoundError, TicketNotFoundError.
    - TicketValidationError (bad fare, inactive user).
    - TripNotScheduledError, NoSeatsAvailableError, TicketNotConfirmedError.
    - DuplicateTicketError.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from transport_kernel.domain.trip import (
    TicketInfo,
    TicketSearch,
    TicketStatus,
    TripStatus,
    validate_fare,
)
from transport_kernel.exceptions import (
    DuplicateTicketError,
    NoSeatsAvailableError,
    TicketNotConfirmedError,
    TicketNotFoundError,
    TicketValidationError,
    TripNotFoundError,
    TripNotScheduledError,
    UserNotFoundError,
)
from transport_kernel.logging_config import LogContext, get_logger
from transport_kernel.models.trip import Ticket, Trip
from transport_kernel.models.user import User
from transport_kernel.selectors.trip_selector import TripSelector
from transport_kernel.services.base import BaseService

logger = get_logger("services.tickets")


class TicketService(BaseService[Ticket]):
    """Tickets and the seat counter of their trip."""

    def _lock_trip(self, trip_id: UUID) -> Trip:
        trip = self.session.execute(
            select(Trip)
            .where(Trip.id == trip_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if trip is None:
            raise TripNotFoundError(str(trip_id))
        return trip

    def _get_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = self.session.get(Ticket, ticket_id)
        if ticket is None:
            raise TicketNotFoundError(str(ticket_id))
        return ticket

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_ticket(self, ticket_id: UUID) -> TicketInfo:
        return self._get_ticket(ticket_id).to_dto()

    def list_tickets(self) -> list[TicketInfo]:
        return TripSelector(self.session).all_tickets()

    def search_tickets(self, filters: TicketSearch) -> list[TicketInfo]:
        return TripSelector(self.session).search_tickets(filters)

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book_ticket(self, trip_id: UUID, user_id: UUID, fare: Decimal | int | str) -> TicketInfo:
        """Take one seat on a SCHEDULED trip for ``user_id``."""
        amount = validate_fare(fare)

        trip = self._lock_trip(trip_id)
        if trip.status != TripStatus.SCHEDULED.value:
            raise TripNotScheduledError(str(trip_id), trip.status)

        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        if not user.is_active:
            raise TicketValidationError("user_id", "user is inactive")

        held = self.session.execute(
            select(Ticket.id).where(
                Ticket.trip_id == trip_id,
                Ticket.user_id == user_id,
                Ticket.status == TicketStatus.CONFIRMED.value,
            )
        ).first()
        if held is not None:
            raise DuplicateTicketError(str(trip_id), str(user_id))

        if trip.available_seats <= 0:
            raise NoSeatsAvailableError(str(trip_id))

        trip.available_seats -= 1
        trip.updated_at = self.clock.now()
        ticket = Ticket(
            trip=trip,
            user=user,
            fare=amount,
            status=TicketStatus.CONFIRMED.value,
            booked_at=self.clock.now(),
        )
        self.session.add(ticket)
        self.session.flush()

        with LogContext.bind(trip_id=str(trip_id), actor_id=str(user_id)):
            logger.info(
                "ticket_booked",
                extra={
                    "ticket_id": str(ticket.id),
                    "fare": amount,
                    "seats_left": trip.available_seats,
                },
            )
        return ticket.to_dto()

    def cancel_ticket(self, ticket_id: UUID) -> TicketInfo:
        """CONFIRMED -> CANCELLED; the seat goes back to the trip."""
        ticket = self._get_ticket(ticket_id)
        if ticket.status != TicketStatus.CONFIRMED.value:
            raise TicketNotConfirmedError(str(ticket_id), ticket.status)

        trip = self._lock_trip(ticket.trip_id)
        self._release(ticket, trip)
        self.session.flush()

        logger.info(
            "ticket_cancelled",
            extra={"ticket_id": str(ticket_id), "trip_id": str(trip.id)},
        )
        return ticket.to_dto()

    def delete_ticket(self, ticket_id: UUID) -> None:
        """Remove a ticket.  A CONFIRMED ticket gives its seat back first."""
        ticket = self._get_ticket(ticket_id)
        trip_id = ticket.trip_id
        released = ticket.status == TicketStatus.CONFIRMED.value
        trip = self._lock_trip(trip_id)
        if released:
            trip.available_seats += 1
            trip.updated_at = self.clock.now()

        trip.tickets.remove(ticket)
        self.session.delete(ticket)
        self.session.flush()

        logger.info(
            "ticket_deleted",
            extra={
                "ticket_id": str(ticket_id),
                "trip_id": str(trip_id),
                "seat_released": released,
            },
        )

    def cancel_trip_tickets(self, trip_id: UUID) -> int:
        """Cancel every CONFIRMED ticket on a trip. Returns how many."""
        trip = self._lock_trip(trip_id)
        confirmed = [t for t in trip.tickets if t.status == TicketStatus.CONFIRMED.value]
        for ticket in confirmed:
            self._release(ticket, trip)
        self.session.flush()
        return len(confirmed)

    def _release(self, ticket: Ticket, trip: Trip) -> None:
        now = self.clock.now()
        ticket.status = TicketStatus.CANCELLED.value
        ticket.cancelled_at = now
        trip.available_seats += 1
        trip.updated_at = now

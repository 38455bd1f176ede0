"""
transport_services.trip_scheduling -- Scheduled trips.

Responsibility:
    Schedules trips on a vehicle and driver, edits, cancels, completes and
    deletes them, and answers trip reads and searches.

Architecture position:
    Services layer.  Resource availability goes through
    ``ResourceBookingGuard``; seats and tickets through ``TicketService``.

Invariants enforced:
    - A trip is scheduled only on an ACTIVE vehicle and driver that are
      not booked (by a requisition or another trip) within the conflict
      window.  Changing the vehicle, driver or time re-runs both checks.
    - ``available_seats`` plus CONFIRMED tickets never exceeds the
      vehicle's capacity.
    - Only SCHEDULED trips change.  Cancelling cancels every CONFIRMED
      ticket; COMPLETED and CANCELLED are final.
    - When an actor is passed, only the roles allowed to assign resources
      may schedule or change trips.

Failure modes:
    - TripNotFoundError, VehicleNotFoundError, DriverNotFoundError.
    - TripValidationError, InvalidSortFieldError.
    - TripNotScheduledError, ForbiddenActionError (403).
    - VehicleUnavailableError, DriverUnavailableError, ResourceConflictError.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from transport_engines.access import check_assign_access
from transport_kernel.domain.access import AccessPolicy, AssignmentPolicy
from transport_kernel.domain.clock import Clock, SystemClock, as_utc
from transport_kernel.domain.requisition import Actor
from transport_kernel.domain.trip import (
    TicketStatus,
    TripDetail,
    TripSearch,
    TripStatus,
    TripUpdate,
    validate_route,
    validate_scheduled_at,
    validate_seats,
)
from transport_kernel.exceptions import (
    ForbiddenActionError,
    TripNotFoundError,
    TripNotScheduledError,
    TripValidationError,
)
from transport_kernel.logging_config import LogContext, get_logger
from transport_kernel.models.fleet import Vehicle
from transport_kernel.models.trip import Trip
from transport_kernel.selectors.trip_selector import TripSelector
from transport_kernel.services.ticket_service import TicketService
from transport_services.resource_booking import ResourceBookingGuard

logger = get_logger("services.trip_scheduling")


class TripScheduler:
    """Trip lifecycle: SCHEDULED -> COMPLETED | CANCELLED."""

    def __init__(
        self,
        session: Session,
        tickets: TicketService | None = None,
        access_policy: AccessPolicy | None = None,
        assignment_policy: AssignmentPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._tickets = tickets or TicketService(session, self._clock)
        self._access = access_policy or AccessPolicy()
        self._guard = ResourceBookingGuard(session, assignment_policy)
        self._selector = TripSelector(session)

    @property
    def tickets(self) -> TicketService:
        return self._tickets

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, trip_id: UUID, *, for_update: bool = False) -> Trip:
        stmt = select(Trip).where(Trip.id == trip_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        trip = self._session.execute(stmt).scalar_one_or_none()
        if trip is None:
            raise TripNotFoundError(str(trip_id))
        return trip

    def _authorize(self, actor: Actor | None, action: str) -> None:
        if actor is None:
            return
        decision = check_assign_access(self._access, actor.role)
        if not decision.allowed:
            raise ForbiddenActionError(action, actor.role, decision.reason)

    @staticmethod
    def _check_capacity(vehicle: Vehicle, available_seats: int, confirmed: int) -> None:
        if available_seats + confirmed > vehicle.capacity:
            raise TripValidationError(
                "available_seats",
                f"{available_seats} open plus {confirmed} booked exceeds "
                f"vehicle capacity {vehicle.capacity}",
            )

    @staticmethod
    def _require_scheduled(trip: Trip) -> None:
        if trip.status != TripStatus.SCHEDULED.value:
            raise TripNotScheduledError(str(trip.id), trip.status)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_trip(self, trip_id: UUID) -> TripDetail:
        return self._load(trip_id).to_detail()

    def list_trips(self) -> list[TripDetail]:
        return self._selector.all_trips()

    def search_trips(self, filters: TripSearch) -> list[TripDetail]:
        return self._selector.search_trips(filters)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def create_trip(
        self,
        route: str,
        vehicle_id: UUID,
        driver_id: UUID,
        scheduled_at: datetime,
        available_seats: int,
        actor: Actor | None = None,
    ) -> TripDetail:
        self._authorize(actor, "schedule trips")
        route = validate_route(route)
        when = validate_scheduled_at(scheduled_at)
        seats = validate_seats(available_seats)

        vehicle, driver = self._guard.lock_available(vehicle_id, driver_id)
        self._check_capacity(vehicle, seats, confirmed=0)
        self._guard.ensure_free(when, vehicle_id=vehicle_id, driver_id=driver_id)

        now = self._clock.now()
        trip = Trip(
            route=route,
            vehicle=vehicle,
            driver=driver,
            scheduled_at=when,
            available_seats=seats,
            status=TripStatus.SCHEDULED.value,
            created_at=now,
            updated_at=now,
        )
        self._session.add(trip)
        self._session.flush()

        logger.info(
            "trip_scheduled",
            extra={
                "trip_id": str(trip.id),
                "vehicle_id": str(vehicle_id),
                "driver_id": str(driver_id),
                "scheduled_at": when,
                "available_seats": seats,
            },
        )
        return trip.to_detail()

    def update_trip(
        self,
        trip_id: UUID,
        changes: TripUpdate | dict[str, Any],
        actor: Actor | None = None,
    ) -> TripDetail:
        """Apply the supplied fields to a SCHEDULED trip."""
        self._authorize(actor, "update trips")
        if isinstance(changes, dict):
            changes = TripUpdate.from_dict(changes)
        values = changes.changes()

        trip = self._load(trip_id, for_update=True)
        self._require_scheduled(trip)
        if not values:
            return trip.to_detail()

        vehicle_id = values.get("vehicle_id", trip.vehicle_id)
        driver_id = values.get("driver_id", trip.driver_id)
        when = values.get("scheduled_at") or as_utc(trip.scheduled_at)
        seats = values.get("available_seats", trip.available_seats)
        confirmed = sum(1 for t in trip.tickets if t.status == TicketStatus.CONFIRMED.value)

        with LogContext.bind(trip_id=str(trip_id)):
            if {"vehicle_id", "driver_id", "scheduled_at"} & values.keys():
                vehicle, driver = self._guard.lock_available(vehicle_id, driver_id)
                self._guard.ensure_free(
                    when,
                    vehicle_id=vehicle_id,
                    driver_id=driver_id,
                    exclude_trip_id=trip.id,
                )
                trip.vehicle = vehicle
                trip.driver = driver
            self._check_capacity(trip.vehicle, seats, confirmed)

            if "route" in values:
                trip.route = values["route"]
            trip.scheduled_at = when
            trip.available_seats = seats
            trip.updated_at = self._clock.now()
            self._session.flush()

            logger.info("trip_updated", extra={"fields": sorted(values)})
        return trip.to_detail()

    def cancel_trip(self, trip_id: UUID, actor: Actor | None = None) -> TripDetail:
        """SCHEDULED -> CANCELLED; every CONFIRMED ticket is cancelled too."""
        self._authorize(actor, "cancel trips")
        trip = self._load(trip_id, for_update=True)
        self._require_scheduled(trip)

        cancelled = self._tickets.cancel_trip_tickets(trip.id)
        trip.status = TripStatus.CANCELLED.value
        trip.updated_at = self._clock.now()
        self._session.flush()

        logger.info(
            "trip_cancelled",
            extra={"trip_id": str(trip_id), "tickets_cancelled": cancelled},
        )
        return trip.to_detail()

    def complete_trip(self, trip_id: UUID, actor: Actor | None = None) -> TripDetail:
        self._authorize(actor, "complete trips")
        trip = self._load(trip_id, for_update=True)
        self._require_scheduled(trip)

        trip.status = TripStatus.COMPLETED.value
        trip.updated_at = self._clock.now()
        self._session.flush()

        logger.info("trip_completed", extra={"trip_id": str(trip_id)})
        return trip.to_detail()

    def delete_trip(self, trip_id: UUID, actor: Actor | None = None) -> None:
        """Delete a trip and, by cascade, its tickets."""
        self._authorize(actor, "delete trips")
        trip = self._load(trip_id, for_update=True)
        ticket_count = len(trip.tickets)
        self._session.delete(trip)
        self._session.flush()

        logger.info(
            "trip_deleted",
            extra={"trip_id": str(trip_id), "tickets_removed": ticket_count},
        )

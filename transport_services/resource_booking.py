"""
transport_services.resource_booking -- Vehicle and driver availability.

Responsibility:
    The one place that decides whether a vehicle and driver can be booked
    for a point in time, whether for a requisition or a scheduled trip.

Architecture position:
    Services layer.  Combines the row locks of the kernel with the pure
    double-booking rule of ``transport_engines.assignment``.

Invariants enforced:
    - Both resources exist and are ACTIVE.  Rows are locked FOR UPDATE so
      two concurrent bookings serialize on the same vehicle or driver.
    - No APPROVED requisition or SCHEDULED trip already holds either
      resource within the conflict window.  The booking being changed is
      excluded from its own check.

Failure modes:
    - VehicleNotFoundError, DriverNotFoundError.
    - VehicleUnavailableError, DriverUnavailableError.
    - ResourceConflictError (409).
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from transport_engines.assignment import conflict_bounds, find_conflict
from transport_kernel.domain.access import AssignmentPolicy
from transport_kernel.domain.resources import DriverStatus, VehicleStatus
from transport_kernel.exceptions import (
    DriverNotFoundError,
    DriverUnavailableError,
    ResourceConflictError,
    VehicleNotFoundError,
    VehicleUnavailableError,
)
from transport_kernel.logging_config import get_logger
from transport_kernel.models.fleet import Driver, Vehicle
from transport_kernel.selectors.booking_selector import BookingSelector

logger = get_logger("services.resource_booking")


class ResourceBookingGuard:
    """ACTIVE-resource and double-booking checks for vehicles and drivers."""

    def __init__(self, session: Session, policy: AssignmentPolicy | None = None) -> None:
        self._session = session
        self._policy = policy or AssignmentPolicy()
        self._bookings = BookingSelector(session)

    @property
    def policy(self) -> AssignmentPolicy:
        return self._policy

    def lock_available(self, vehicle_id: UUID, driver_id: UUID) -> tuple[Vehicle, Driver]:
        """Lock and return the vehicle and driver; both must be ACTIVE."""
        vehicle = self._session.get(Vehicle, vehicle_id, with_for_update=True)
        if vehicle is None:
            raise VehicleNotFoundError(str(vehicle_id))
        driver = self._session.get(Driver, driver_id, with_for_update=True)
        if driver is None:
            raise DriverNotFoundError(str(driver_id))

        if vehicle.status != VehicleStatus.ACTIVE.value:
            raise VehicleUnavailableError(str(vehicle_id), vehicle.status)
        if driver.status != DriverStatus.ACTIVE.value:
            raise DriverUnavailableError(str(driver_id), driver.status)
        return vehicle, driver

    def ensure_free(
        self,
        when: datetime,
        *,
        vehicle_id: UUID,
        driver_id: UUID,
        exclude_requisition_id: UUID | None = None,
        exclude_trip_id: UUID | None = None,
    ) -> None:
        """Raise ResourceConflictError if either resource is booked near ``when``."""
        if not self._policy.enabled:
            return

        start, end = conflict_bounds(when, self._policy)
        for resource_type, resource_id, lookup in (
            ("Vehicle", vehicle_id, {"vehicle_id": vehicle_id}),
            ("Driver", driver_id, {"driver_id": driver_id}),
        ):
            candidates = self._bookings.bookings(
                start=start,
                end=end,
                exclude_requisition_id=exclude_requisition_id,
                exclude_trip_id=exclude_trip_id,
                **lookup,
            )
            conflict = find_conflict(when, candidates, self._policy)
            if conflict is None:
                continue

            logger.warning(
                "resource_conflict",
                extra={
                    "resource_type": resource_type,
                    "resource_id": str(resource_id),
                    "conflicting_kind": conflict.kind,
                    "conflicting_id": str(conflict.id),
                    "window_minutes": self._policy.conflict_window_minutes,
                },
            )
            raise ResourceConflictError(
                resource_type, str(resource_id), str(conflict.id), conflict.kind,
            )

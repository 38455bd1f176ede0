"""
Trip and ticket domain types (``transport_kernel.domain.trip``).

Responsibility
--------------
Value objects for scheduled trips and the tickets booked on them: read
DTOs, partial-update and search inputs, and field validation.

Architecture position
---------------------
**Kernel domain layer** -- pure.  ZERO I/O.

Invariants enforced
-------------------
* ``route`` is non-blank after stripping.
* ``available_seats`` is an integer >= 0.
* ``scheduled_at`` is a datetime; naive values are treated as UTC.
* ``fare`` is a non-negative ``Decimal`` with two decimal places.  Floats
  are rejected; money never passes through binary floating point.
* Searches sort only by an allow-listed column, ``asc`` or ``desc``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import UTC, date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID

from transport_kernel.domain.clock import as_utc
from transport_kernel.domain.resources import DriverSummary, VehicleSummary
from transport_kernel.exceptions import (
    InvalidSortFieldError,
    TicketValidationError,
    TripValidationError,
)

FARE_QUANTUM = Decimal("0.01")

TRIP_SORTABLE_FIELDS: tuple[str, ...] = (
    "scheduled_at",
    "created_at",
    "available_seats",
    "route",
    "status",
)

TICKET_SORTABLE_FIELDS: tuple[str, ...] = (
    "booked_at",
    "fare",
    "status",
)

SORT_DIRECTIONS: tuple[str, ...] = ("asc", "desc")


class TripStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TicketStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


# =========================================================================
# Validation
# =========================================================================


def validate_route(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TripValidationError("route", "must be a non-empty string")
    return value.strip()


def validate_seats(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TripValidationError("available_seats", "must be an integer")
    if value < 0:
        raise TripValidationError("available_seats", "must not be negative")
    return value


def validate_scheduled_at(value: Any) -> datetime:
    if not isinstance(value, datetime):
        raise TripValidationError("scheduled_at", "must be a datetime")
    return as_utc(value)


def validate_fare(value: Any) -> Decimal:
    if isinstance(value, (bool, float)):
        raise TicketValidationError("fare", "must be a Decimal, int or numeric string")
    try:
        fare = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise TicketValidationError("fare", f"not a number: {value!r}") from None
    if not fare.is_finite():
        raise TicketValidationError("fare", "must be finite")
    if fare < 0:
        raise TicketValidationError("fare", "must not be negative")
    return fare.quantize(FARE_QUANTUM, rounding=ROUND_HALF_UP)


def _parse_enum(enum_cls: type[Enum], value: Any, error_cls: type[Exception]) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(s.value for s in enum_cls)
        raise error_cls(
            "status", f"unknown status {value!r} (expected one of {allowed})"
        ) from None


def _check_sort(sort_by: str, sort_order: str, allowed: tuple[str, ...]) -> None:
    if sort_by not in allowed:
        raise InvalidSortFieldError(sort_by, allowed)
    if sort_order not in SORT_DIRECTIONS:
        raise InvalidSortFieldError(sort_order, SORT_DIRECTIONS)


def day_bounds(day: date | None) -> tuple[datetime, datetime] | None:
    """Half-open ``[start, end)`` UTC bounds of a calendar day."""
    if day is None:
        return None
    start = datetime.combine(day, time.min, tzinfo=UTC)
    return start, start + timedelta(days=1)


# =========================================================================
# Inputs
# =========================================================================


@dataclass(frozen=True)
class TripUpdate:
    """Partial trip update. Fields left as None are not touched.

    Status moves only through ``cancel_trip`` / ``complete_trip``.
    """

    route: str | None = None
    vehicle_id: UUID | None = None
    driver_id: UUID | None = None
    scheduled_at: datetime | None = None
    available_seats: int | None = None

    def changes(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if self.route is not None:
            values["route"] = validate_route(self.route)
        if self.vehicle_id is not None:
            values["vehicle_id"] = self.vehicle_id
        if self.driver_id is not None:
            values["driver_id"] = self.driver_id
        if self.scheduled_at is not None:
            values["scheduled_at"] = validate_scheduled_at(self.scheduled_at)
        if self.available_seats is not None:
            values["available_seats"] = validate_seats(self.available_seats)
        return values

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TripUpdate:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise TripValidationError(sorted(unknown)[0], "cannot be updated")
        return cls(**data)


@dataclass(frozen=True)
class TripSearch:
    """Trip filters.  ``route`` is a case-insensitive substring;
    ``scheduled_on`` matches the UTC calendar day."""

    route: str | None = None
    vehicle_id: UUID | None = None
    driver_id: UUID | None = None
    status: TripStatus | None = None
    scheduled_on: date | None = None
    sort_by: str = "scheduled_at"
    sort_order: str = "asc"

    def __post_init__(self) -> None:
        _check_sort(self.sort_by, self.sort_order, TRIP_SORTABLE_FIELDS)
        if self.status is not None:
            object.__setattr__(
                self, "status", _parse_enum(TripStatus, self.status, TripValidationError)
            )


@dataclass(frozen=True)
class TicketSearch:
    """Ticket filters.  ``booked_on`` matches the UTC calendar day."""

    trip_id: UUID | None = None
    user_id: UUID | None = None
    status: TicketStatus | None = None
    booked_on: date | None = None
    sort_by: str = "booked_at"
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        _check_sort(self.sort_by, self.sort_order, TICKET_SORTABLE_FIELDS)
        if self.status is not None:
            object.__setattr__(
                self, "status", _parse_enum(TicketStatus, self.status, TicketValidationError)
            )


# =========================================================================
# Read models
# =========================================================================


@dataclass(frozen=True)
class TicketInfo:
    id: UUID
    trip_id: UUID
    user_id: UUID
    fare: Decimal
    status: TicketStatus
    booked_at: datetime
    cancelled_at: datetime | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == TicketStatus.CONFIRMED


@dataclass(frozen=True)
class TripInfo:
    """Flat snapshot of a trip row. Immutable."""

    id: UUID
    route: str
    vehicle_id: UUID
    driver_id: UUID
    scheduled_at: datetime
    available_seats: int
    status: TripStatus
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class TripDetail:
    """A trip with its vehicle, driver and tickets (booking order)."""

    trip: TripInfo
    vehicle: VehicleSummary
    driver: DriverSummary
    tickets: tuple[TicketInfo, ...] = ()

    @property
    def id(self) -> UUID:
        return self.trip.id

    @property
    def status(self) -> TripStatus:
        return self.trip.status

    @property
    def confirmed_tickets(self) -> tuple[TicketInfo, ...]:
        return tuple(t for t in self.tickets if t.is_confirmed)

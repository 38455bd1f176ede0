"""
Requisition domain types (``transport_kernel.domain.requisition``).

Responsibility
--------------
Value objects for requisitions: the read DTOs, the partial-update and
search inputs, the acting principal, and field validation.

Architecture position
---------------------
**Kernel domain layer** -- pure.  ZERO I/O.  Validation raises kernel
exceptions; nothing here touches a session.

Invariants enforced
-------------------
* Text fields (purpose, places, pickup point, contact number) are
  non-blank after stripping.
* ``passenger_count`` is an integer >= 1.
* ``required_at`` is a datetime; naive values are treated as UTC.
* Search sorts only by an allow-listed column, ``asc`` or ``desc``.
* Search status filters name a known status; ranges are not inverted.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from uuid import UUID

from transport_kernel.domain.approval import ApprovalInfo, RequestStatus
from transport_kernel.domain.clock import as_utc
from transport_kernel.domain.resources import DriverSummary, UserSummary, VehicleSummary
from transport_kernel.domain.roles import role_value
from transport_kernel.exceptions import InvalidSortFieldError, RequisitionValidationError

TEXT_FIELDS: tuple[str, ...] = (
    "purpose",
    "places_to_visit",
    "place_to_pickup",
    "contact_number",
)

SORTABLE_FIELDS: tuple[str, ...] = (
    "created_at",
    "updated_at",
    "required_at",
    "passenger_count",
    "purpose",
    "status",
)

SORT_DIRECTIONS: tuple[str, ...] = ("asc", "desc")


# =========================================================================
# Principal
# =========================================================================


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as resolved by the HTTP boundary."""

    user_id: UUID
    role: str
    department: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", role_value(self.role))
        if self.department is not None:
            object.__setattr__(self, "department", role_value(self.department))


# =========================================================================
# Validation
# =========================================================================


def validate_text(field_name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise RequisitionValidationError(field_name, "must be a non-empty string")
    return value.strip()


def validate_passenger_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RequisitionValidationError("passenger_count", "must be an integer")
    if value < 1:
        raise RequisitionValidationError("passenger_count", "must be at least 1")
    return value


def validate_required_at(value: Any) -> datetime:
    if not isinstance(value, datetime):
        raise RequisitionValidationError("required_at", "must be a datetime")
    return as_utc(value)


def parse_status_filter(value: Any) -> RequestStatus:
    raw = str(value).strip().upper()
    try:
        return RequestStatus(raw)
    except ValueError:
        allowed = ", ".join(s.value for s in RequestStatus)
        raise RequisitionValidationError(
            "status", f"unknown status {value!r} (expected one of {allowed})"
        ) from None


def validate_field(field_name: str, value: Any) -> Any:
    """Validate one requisition field by name."""
    if field_name in TEXT_FIELDS:
        return validate_text(field_name, value)
    if field_name == "passenger_count":
        return validate_passenger_count(value)
    if field_name == "required_at":
        return validate_required_at(value)
    raise RequisitionValidationError(field_name, "unknown field")


# =========================================================================
# Inputs
# =========================================================================


@dataclass(frozen=True)
class RequisitionUpdate:
    """Partial update. Fields left as None are not touched."""

    purpose: str | None = None
    places_to_visit: str | None = None
    place_to_pickup: str | None = None
    passenger_count: int | None = None
    required_at: datetime | None = None
    contact_number: str | None = None

    def changes(self) -> dict[str, Any]:
        """Validated mapping of the supplied fields only."""
        return {
            f.name: validate_field(f.name, getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequisitionUpdate:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise RequisitionValidationError(
                sorted(unknown)[0], "cannot be updated"
            )
        return cls(**data)


@dataclass(frozen=True)
class RequisitionSearch:
    """Composable search filters.

    Substring filters are case-insensitive.  ``passenger_count`` and
    ``required_on`` are exact matches (``required_on`` matches the UTC
    calendar day); the ``min_``/``max_`` and ``required_from``/``required_to``
    pairs are inclusive ranges.
    """

    requester_id: UUID | None = None
    status: RequestStatus | None = None
    purpose: str | None = None
    places_to_visit: str | None = None
    place_to_pickup: str | None = None
    contact_number: str | None = None
    passenger_count: int | None = None
    min_passenger_count: int | None = None
    max_passenger_count: int | None = None
    required_on: date | None = None
    required_from: datetime | None = None
    required_to: datetime | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        if self.sort_by not in SORTABLE_FIELDS:
            raise InvalidSortFieldError(self.sort_by, SORTABLE_FIELDS)
        if self.sort_order not in SORT_DIRECTIONS:
            raise InvalidSortFieldError(self.sort_order, SORT_DIRECTIONS)
        if self.status is not None and not isinstance(self.status, RequestStatus):
            object.__setattr__(self, "status", parse_status_filter(self.status))
        if self.required_from is not None:
            object.__setattr__(self, "required_from", as_utc(self.required_from))
        if self.required_to is not None:
            object.__setattr__(self, "required_to", as_utc(self.required_to))

        if (
            self.min_passenger_count is not None
            and self.max_passenger_count is not None
            and self.min_passenger_count > self.max_passenger_count
        ):
            raise RequisitionValidationError(
                "min_passenger_count", "must not exceed max_passenger_count"
            )
        if (
            self.required_from is not None
            and self.required_to is not None
            and self.required_from > self.required_to
        ):
            raise RequisitionValidationError("required_from", "must not be after required_to")

    def required_day_bounds(self) -> tuple[datetime, datetime] | None:
        """Half-open ``[start, end)`` UTC bounds for ``required_on``."""
        if self.required_on is None:
            return None
        start = datetime.combine(self.required_on, time.min, tzinfo=UTC)
        return start, start + timedelta(days=1)


# =========================================================================
# Read models
# =========================================================================


@dataclass(frozen=True)
class RequisitionInfo:
    """Flat snapshot of a requisition row. Immutable."""

    id: UUID
    requester_id: UUID
    purpose: str
    places_to_visit: str
    place_to_pickup: str
    passenger_count: int
    required_at: datetime
    contact_number: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    vehicle_id: UUID | None = None
    driver_id: UUID | None = None


@dataclass(frozen=True)
class RequisitionDetail:
    """A requisition with its requester, approval history and resources."""

    requisition: RequisitionInfo
    requester: UserSummary
    approvals: tuple[ApprovalInfo, ...] = ()
    vehicle: VehicleSummary | None = None
    driver: DriverSummary | None = None

    @property
    def id(self) -> UUID:
        return self.requisition.id

    @property
    def status(self) -> RequestStatus:
        return self.requisition.status

    @property
    def pending_approval(self) -> ApprovalInfo | None:
        for approval in self.approvals:
            if approval.is_pending:
                return approval
        return None

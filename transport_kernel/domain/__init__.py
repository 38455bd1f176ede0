"""Pure domain layer - value objects and protocols. Zero I/O."""

from transport_kernel.domain.access import AccessPolicy, AssignmentPolicy
from transport_kernel.domain.approval import (
    DECISION_STATUSES,
    DEFAULT_APPROVAL_CHAIN,
    STATUS_TRANSITIONS,
    ApprovalChain,
    ApprovalInfo,
    ApproverDirectory,
    DecisionOutcome,
    PendingApproval,
    RequestStatus,
)
from transport_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from transport_kernel.domain.requisition import (
    Actor,
    RequisitionDetail,
    RequisitionInfo,
    RequisitionSearch,
    RequisitionUpdate,
)
from transport_kernel.domain.resources import (
    Booking,
    DriverStatus,
    DriverSummary,
    UserSummary,
    VehicleStatus,
    VehicleSummary,
)
from transport_kernel.domain.roles import Department, Role
from transport_kernel.domain.trip import (
    TicketInfo,
    TicketSearch,
    TicketStatus,
    TripDetail,
    TripInfo,
    TripSearch,
    TripStatus,
    TripUpdate,
)

__all__ = [
    "AccessPolicy",
    "AssignmentPolicy",
    "ApprovalChain",
    "ApprovalInfo",
    "ApproverDirectory",
    "DecisionOutcome",
    "PendingApproval",
    "RequestStatus",
    "DECISION_STATUSES",
    "DEFAULT_APPROVAL_CHAIN",
    "STATUS_TRANSITIONS",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Actor",
    "RequisitionDetail",
    "RequisitionInfo",
    "RequisitionSearch",
    "RequisitionUpdate",
    "Booking",
    "DriverStatus",
    "DriverSummary",
    "UserSummary",
    "VehicleStatus",
    "VehicleSummary",
    "Department",
    "Role",
    "TicketInfo",
    "TicketSearch",
    "TicketStatus",
    "TripDetail",
    "TripInfo",
    "TripSearch",
    "TripStatus",
    "TripUpdate",
]

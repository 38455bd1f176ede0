"""
Typed Exception Hierarchy for the Transport Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The HTTP layer in front of this kernel must map every failure to a status
code without parsing message strings. Every exception therefore carries:
  1. A TYPED class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. An HTTP_STATUS attribute (the status the boundary should surface)
  4. Structured DATA (ids, roles, statuses) as instance attributes

Example - RIGHT way:
    try:
        approvals.process_approval(approval_id, "APPROVED", acting_role="HOD")
    except UnauthorizedApproverError as e:
        respond(e.http_status, code=e.code, required_role=e.required_role)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TransportKernelError (base, 500)
    |
    +-- NotFoundError (404)
    |   +-- RequisitionNotFoundError
    |   +-- ApprovalNotFoundError
    |   +-- UserNotFoundError
    |   +-- VehicleNotFoundError
    |   +-- DriverNotFoundError
    |   +-- TripNotFoundError
    |   +-- TicketNotFoundError
    |
    +-- ValidationError (400)
    |   +-- InvalidDecisionError
    |   +-- InvalidApproverRoleError
    |   +-- RequisitionValidationError
    |   +-- InvalidSortFieldError
    |   +-- TripValidationError
    |   +-- TicketValidationError
    |
    +-- WorkflowError (400)
    |   +-- ApprovalAlreadyResolvedError
    |   +-- DuplicatePendingApprovalError
    |   +-- RequisitionNotPendingError
    |   +-- RequisitionNotApprovedError
    |   +-- NoApproverAvailableError
    |   +-- TripNotScheduledError
    |   +-- NoSeatsAvailableError
    |   +-- TicketNotConfirmedError
    |
    +-- ResourceError (400)
    |   +-- VehicleUnavailableError
    |   +-- DriverUnavailableError
    |   +-- DuplicateVehicleError
    |   +-- DuplicateDriverError
    |   +-- DuplicateUserError
    |   +-- DuplicateTicketError
    |   +-- ResourceConflictError (409)
    |
    +-- AuthorizationError (403)
    |   +-- UnauthorizedApproverError
    |   +-- ForbiddenActionError
    |
    +-- ImmutabilityViolationError (409)

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                        | When Raised
--------------|-----------------------------|------------------------------------
Not found     | REQUISITION_NOT_FOUND       | Requisition id doesn't exist
              | APPROVAL_NOT_FOUND          | Approval id doesn't exist
              | USER_NOT_FOUND              | Requester/approver doesn't exist
              | VEHICLE_NOT_FOUND           | Vehicle id doesn't exist
              | DRIVER_NOT_FOUND            | Driver id doesn't exist
              | TRIP_NOT_FOUND              | Trip id doesn't exist
              | TICKET_NOT_FOUND            | Ticket id doesn't exist
--------------|-----------------------------|------------------------------------
Validation    | INVALID_DECISION            | Decision not APPROVED/REJECTED
              | INVALID_APPROVER_ROLE       | Role is not a stage of the chain
              | INVALID_REQUISITION         | Bad requisition field
              | INVALID_SORT_FIELD          | Search sort field not allowed
              | INVALID_TRIP                | Bad trip field
              | INVALID_TICKET              | Bad ticket field or search filter
--------------|-----------------------------|------------------------------------
Workflow      | APPROVAL_ALREADY_RESOLVED   | Approval decided already
              | DUPLICATE_PENDING_APPROVAL  | Requisition already has a pending stage
              | REQUISITION_NOT_PENDING     | Edit/delete/stage on a settled requisition
              | REQUISITION_NOT_APPROVED    | Assignment before final approval
              | NO_APPROVER_AVAILABLE       | Directory found nobody for a stage
              | TRIP_NOT_SCHEDULED          | Change or booking on a settled trip
              | NO_SEATS_AVAILABLE          | Trip has no seats left
              | TICKET_NOT_CONFIRMED        | Cancelling a cancelled ticket
--------------|-----------------------------|------------------------------------
Resource      | VEHICLE_UNAVAILABLE         | Vehicle status is not ACTIVE
              | DRIVER_UNAVAILABLE          | Driver status is not ACTIVE
              | DUPLICATE_VEHICLE           | Registration number taken
              | DUPLICATE_DRIVER            | License number taken
              | DUPLICATE_USER              | Email taken
              | DUPLICATE_TICKET            | User already holds a seat on the trip
              | RESOURCE_CONFLICT           | Vehicle/driver double-booked (requisition or trip)
--------------|-----------------------------|------------------------------------
Authorization | UNAUTHORIZED_APPROVER       | Acting role may not decide this stage
              | FORBIDDEN_ACTION            | Actor may not perform the operation
--------------|-----------------------------|------------------------------------
Immutability  | IMMUTABILITY_VIOLATION      | Mutating a decided approval

===============================================================================
"""

from __future__ import annotations

from typing import Any


class TransportKernelError(Exception):
    """
    Base exception for all transport kernel errors.

    All subclasses must have ``code`` and ``http_status`` class attributes.
    """

    code: str = "TRANSPORT_KERNEL_ERROR"
    http_status: int = 500


# Not-found exceptions


class NotFoundError(TransportKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"
    http_status: int = 404


class RequisitionNotFoundError(NotFoundError):
    """Requisition with given ID was not found."""

    code: str = "REQUISITION_NOT_FOUND"

    def __init__(self, requisition_id: str):
        self.requisition_id = requisition_id
        super().__init__(f"Requisition not found: {requisition_id}")


class ApprovalNotFoundError(NotFoundError):
    """Approval with given ID was not found."""

    code: str = "APPROVAL_NOT_FOUND"

    def __init__(self, approval_id: str):
        self.approval_id = approval_id
        super().__init__(f"Approval not found: {approval_id}")


class UserNotFoundError(NotFoundError):
    """User with given ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class VehicleNotFoundError(NotFoundError):
    """Vehicle with given ID was not found."""

    code: str = "VEHICLE_NOT_FOUND"

    def __init__(self, vehicle_id: str):
        self.vehicle_id = vehicle_id
        super().__init__(f"Vehicle not found: {vehicle_id}")


class DriverNotFoundError(NotFoundError):
    """Driver with given ID was not found."""

    code: str = "DRIVER_NOT_FOUND"

    def __init__(self, driver_id: str):
        self.driver_id = driver_id
        super().__init__(f"Driver not found: {driver_id}")


class TripNotFoundError(NotFoundError):
    """Trip with given ID was not found."""

    code: str = "TRIP_NOT_FOUND"

    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__(f"Trip not found: {trip_id}")


class TicketNotFoundError(NotFoundError):
    """Ticket with given ID was not found."""

    code: str = "TICKET_NOT_FOUND"

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket not found: {ticket_id}")


# Validation exceptions


class ValidationError(TransportKernelError):
    """Base exception for bad input."""

    code: str = "VALIDATION_ERROR"
    http_status: int = 400


class InvalidDecisionError(ValidationError):
    """Decision value is not one of APPROVED / REJECTED."""

    code: str = "INVALID_DECISION"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid decision: {value!r} (expected APPROVED or REJECTED)")


class InvalidApproverRoleError(ValidationError):
    """Role is not a stage of the approval chain."""

    code: str = "INVALID_APPROVER_ROLE"

    def __init__(self, role: str, stages: tuple[str, ...]):
        self.role = role
        self.stages = stages
        super().__init__(
            f"Role {role!r} is not an approval stage (stages: {', '.join(stages)})"
        )


class RequisitionValidationError(ValidationError):
    """A requisition field failed validation."""

    code: str = "INVALID_REQUISITION"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid requisition field {field!r}: {reason}")


class InvalidSortFieldError(ValidationError):
    """Search requested an unsupported sort field or direction."""

    code: str = "INVALID_SORT_FIELD"

    def __init__(self, field: str, allowed: tuple[str, ...]):
        self.field = field
        self.allowed = allowed
        super().__init__(
            f"Cannot sort by {field!r} (allowed: {', '.join(allowed)})"
        )


class TripValidationError(ValidationError):
    """A trip field failed validation."""

    code: str = "INVALID_TRIP"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid trip field {field!r}: {reason}")


class TicketValidationError(ValidationError):
    """A ticket field or ticket search filter failed validation."""

    code: str = "INVALID_TICKET"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid ticket field {field!r}: {reason}")


# Workflow exceptions


class WorkflowError(TransportKernelError):
    """Base exception for approval workflow violations."""

    code: str = "WORKFLOW_ERROR"
    http_status: int = 400


class ApprovalAlreadyResolvedError(WorkflowError):
    """Approval has already been decided; decisions are made exactly once."""

    code: str = "APPROVAL_ALREADY_RESOLVED"

    def __init__(self, approval_id: str, status: str):
        self.approval_id = approval_id
        self.status = status
        super().__init__(f"Approval {approval_id} is already {status}")


class DuplicatePendingApprovalError(WorkflowError):
    """Requisition already has an open approval stage."""

    code: str = "DUPLICATE_PENDING_APPROVAL"

    def __init__(self, requisition_id: str, pending_approval_id: str):
        self.requisition_id = requisition_id
        self.pending_approval_id = pending_approval_id
        super().__init__(
            f"Requisition {requisition_id} already has pending approval "
            f"{pending_approval_id}"
        )


class RequisitionNotPendingError(WorkflowError):
    """Operation requires the requisition to still be PENDING."""

    code: str = "REQUISITION_NOT_PENDING"

    def __init__(self, requisition_id: str, status: str):
        self.requisition_id = requisition_id
        self.status = status
        super().__init__(
            f"Requisition {requisition_id} is {status}, expected PENDING"
        )


class RequisitionNotApprovedError(WorkflowError):
    """Resources can only be assigned to an APPROVED requisition."""

    code: str = "REQUISITION_NOT_APPROVED"

    def __init__(self, requisition_id: str, status: str):
        self.requisition_id = requisition_id
        self.status = status
        super().__init__(
            f"Cannot assign vehicle and driver to requisition {requisition_id} "
            f"with status {status}"
        )


class NoApproverAvailableError(WorkflowError):
    """The approver directory could not resolve anyone for a stage."""

    code: str = "NO_APPROVER_AVAILABLE"

    def __init__(self, stage_role: str, department: str | None = None):
        self.stage_role = stage_role
        self.department = department
        scope = f" in department {department}" if department else ""
        super().__init__(f"No active {stage_role} approver available{scope}")


class TripNotScheduledError(WorkflowError):
    """Trip is CANCELLED or COMPLETED and can no longer change or take bookings."""

    code: str = "TRIP_NOT_SCHEDULED"

    def __init__(self, trip_id: str, status: str):
        self.trip_id = trip_id
        self.status = status
        super().__init__(f"Trip {trip_id} is {status}, expected SCHEDULED")


class NoSeatsAvailableError(WorkflowError):
    """Trip has no seats left."""

    code: str = "NO_SEATS_AVAILABLE"

    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__(f"No available seats for trip {trip_id}")


class TicketNotConfirmedError(WorkflowError):
    """Only a CONFIRMED ticket can be cancelled."""

    code: str = "TICKET_NOT_CONFIRMED"

    def __init__(self, ticket_id: str, status: str):
        self.ticket_id = ticket_id
        self.status = status
        super().__init__(f"Ticket {ticket_id} is {status}, expected CONFIRMED")


# Resource exceptions


class ResourceError(TransportKernelError):
    """Base exception for vehicle/driver/user resource problems."""

    code: str = "RESOURCE_ERROR"
    http_status: int = 400


class VehicleUnavailableError(ResourceError):
    """Vehicle is not ACTIVE."""

    code: str = "VEHICLE_UNAVAILABLE"

    def __init__(self, vehicle_id: str, status: str):
        self.vehicle_id = vehicle_id
        self.status = status
        super().__init__(f"Vehicle {vehicle_id} not available (status {status})")


class DriverUnavailableError(ResourceError):
    """Driver is not ACTIVE."""

    code: str = "DRIVER_UNAVAILABLE"

    def __init__(self, driver_id: str, status: str):
        self.driver_id = driver_id
        self.status = status
        super().__init__(f"Driver {driver_id} not available (status {status})")


class DuplicateVehicleError(ResourceError):
    """A vehicle with this registration number already exists."""

    code: str = "DUPLICATE_VEHICLE"

    def __init__(self, registration_number: str):
        self.registration_number = registration_number
        super().__init__(
            f"Vehicle with registration number {registration_number} already exists"
        )


class DuplicateDriverError(ResourceError):
    """A driver with this license number already exists."""

    code: str = "DUPLICATE_DRIVER"

    def __init__(self, license_number: str):
        self.license_number = license_number
        super().__init__(f"Driver with license number {license_number} already exists")


class DuplicateUserError(ResourceError):
    """A user with this email already exists."""

    code: str = "DUPLICATE_USER"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} already exists")


class DuplicateTicketError(ResourceError):
    """User already holds a CONFIRMED ticket on this trip."""

    code: str = "DUPLICATE_TICKET"

    def __init__(self, trip_id: str, user_id: str):
        self.trip_id = trip_id
        self.user_id = user_id
        super().__init__(f"User {user_id} already holds a ticket for trip {trip_id}")


class ResourceConflictError(ResourceError):
    """Vehicle or driver is already booked within the conflict window.

    ``conflicting_kind`` is ``"requisition"`` or ``"trip"``.
    """

    code: str = "RESOURCE_CONFLICT"
    http_status: int = 409

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        conflicting_id: str,
        conflicting_kind: str = "requisition",
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.conflicting_id = conflicting_id
        self.conflicting_kind = conflicting_kind
        super().__init__(
            f"{resource_type} {resource_id} is already booked for {conflicting_kind} "
            f"{conflicting_id} in an overlapping time window"
        )


# Authorization exceptions


class AuthorizationError(TransportKernelError):
    """Base exception for role/actor authorization failures."""

    code: str = "AUTHORIZATION_ERROR"
    http_status: int = 403


class UnauthorizedApproverError(AuthorizationError):
    """Acting role may not decide this approval stage."""

    code: str = "UNAUTHORIZED_APPROVER"

    def __init__(self, approval_id: str, acting_role: str, required_role: str):
        self.approval_id = approval_id
        self.acting_role = acting_role
        self.required_role = required_role
        super().__init__(
            f"Role {acting_role} is not authorized to process approval "
            f"{approval_id} (requires {required_role})"
        )


class ForbiddenActionError(AuthorizationError):
    """Actor may not perform the requested operation."""

    code: str = "FORBIDDEN_ACTION"

    def __init__(self, action: str, actor_role: str, reason: str = ""):
        self.action = action
        self.actor_role = actor_role
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Role {actor_role} may not {action}{detail}")


# Immutability exceptions


class ImmutabilityViolationError(TransportKernelError):
    """Attempted to modify a record that is frozen."""

    code: str = "IMMUTABILITY_VIOLATION"
    http_status: int = 409

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id}: {reason}")


# =============================================================================
# Boundary mapping
# =============================================================================


def error_payload(
    exc: BaseException,
    *,
    production: bool = False,
) -> tuple[int, dict[str, Any]]:
    """Map an exception to ``(http_status, body)`` for the HTTP boundary.

    Kernel errors surface their own status, code and message. Anything else
    is an infrastructure failure: 500, with the message hidden in production.
    """
    if isinstance(exc, TransportKernelError):
        body: dict[str, Any] = {"code": exc.code, "message": str(exc)}
        details = {
            k: v for k, v in vars(exc).items() if not k.startswith("_")
        }
        if details:
            body["details"] = details
        return exc.http_status, body

    return 500, {
        "code": TransportKernelError.code,
        "message": "Server Error" if production else str(exc) or "Server Error",
    }

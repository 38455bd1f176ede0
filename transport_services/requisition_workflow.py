"""
transport_services.requisition_workflow -- Requisition lifecycle coordinator.

Responsibility:
    Creates requisitions (seeding the first approval stage), reads them
    with their approval history, applies caller-checked updates and
    deletions, runs searches, and binds a vehicle and driver once the
    requisition is APPROVED.

Architecture position:
    Services layer.  May import from transport_engines/ (pure rules) and
    transport_kernel/ (domain, models, selectors, services).  Thin
    coordinator: role rules live in ``transport_engines.access``, the
    ACTIVE and double-booking rules in ``ResourceBookingGuard``, stage
    handling in ``ApprovalService``.

Invariants enforced:
    - A new requisition always has exactly one PENDING approval for the
      first stage of the chain, created in the same SAVEPOINT.
    - The first-stage approver comes from the approver directory, never
      the requester.
    - Resources are assigned only while APPROVED, only if ACTIVE, and
      never double-booked inside the conflict window (against other
      requisitions and scheduled trips).

Failure modes:
    - RequisitionNotFoundError, UserNotFoundError, VehicleNotFoundError,
      DriverNotFoundError.
    - RequisitionValidationError, InvalidSortFieldError.
    - ForbiddenActionError (403), RequisitionNotPendingError,
      RequisitionNotApprovedError.
    - VehicleUnavailableError, DriverUnavailableError, ResourceConflictError.
    - NoApproverAvailableError on creation (nothing is persisted).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from transport_engines.access import (
    AccessDecision,
    AccessVerdict,
    check_assign_access,
    check_delete_access,
    check_update_access,
    resolve_listing_scope,
)
from transport_kernel.domain.access import AccessPolicy, AssignmentPolicy
from transport_kernel.domain.approval import RequestStatus
from transport_kernel.domain.clock import Clock, SystemClock, as_utc
from transport_kernel.domain.requisition import (
    Actor,
    RequisitionDetail,
    RequisitionSearch,
    RequisitionUpdate,
    validate_passenger_count,
    validate_required_at,
    validate_text,
)
from transport_kernel.domain.roles import role_value
from transport_kernel.exceptions import (
    ForbiddenActionError,
    RequisitionNotApprovedError,
    RequisitionNotFoundError,
    RequisitionNotPendingError,
    UserNotFoundError,
)
from transport_kernel.logging_config import LogContext, get_logger
from transport_kernel.models.requisition import Requisition
from transport_kernel.models.user import User
from transport_kernel.selectors.requisition_selector import RequisitionSelector
from transport_kernel.services.approval_service import ApprovalService
from transport_services.resource_booking import ResourceBookingGuard

logger = get_logger("services.requisition_workflow")


class RequisitionWorkflow:
    """Coordinates the requisition lifecycle around the approval chain."""

    def __init__(
        self,
        session: Session,
        approvals: ApprovalService | None = None,
        access_policy: AccessPolicy | None = None,
        assignment_policy: AssignmentPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._approvals = approvals or ApprovalService(session, clock=self._clock)
        self._access = access_policy or AccessPolicy()
        self._assignment = assignment_policy or AssignmentPolicy()
        self._selector = RequisitionSelector(session)
        self._guard = ResourceBookingGuard(session, self._assignment)

    @property
    def approvals(self) -> ApprovalService:
        return self._approvals

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, requisition_id: UUID, *, for_update: bool = False) -> Requisition:
        stmt = select(Requisition).where(Requisition.id == requisition_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        model = self._session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise RequisitionNotFoundError(str(requisition_id))
        return model

    @staticmethod
    def _enforce(decision: AccessDecision, action: str, actor: Actor, model: Requisition) -> None:
        if decision.verdict == AccessVerdict.NOT_PENDING:
            raise RequisitionNotPendingError(str(model.id), model.status)
        if decision.verdict == AccessVerdict.FORBIDDEN:
            logger.warning(
                "requisition_access_denied",
                extra={"action": action, "actor_role": actor.role, "reason": decision.reason},
            )
            raise ForbiddenActionError(action, actor.role, decision.reason)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_requisition(
        self,
        requester_id: UUID,
        purpose: str,
        places_to_visit: str,
        place_to_pickup: str,
        passenger_count: int,
        required_at: datetime,
        contact_number: str,
    ) -> RequisitionDetail:
        """Create a PENDING requisition and open its first approval stage.

        Both rows are written under one SAVEPOINT; if no first-stage
        approver can be found, neither is kept.
        """
        values = {
            "purpose": validate_text("purpose", purpose),
            "places_to_visit": validate_text("places_to_visit", places_to_visit),
            "place_to_pickup": validate_text("place_to_pickup", place_to_pickup),
            "passenger_count": validate_passenger_count(passenger_count),
            "required_at": validate_required_at(required_at),
            "contact_number": validate_text("contact_number", contact_number),
        }

        requester = self._session.get(User, requester_id)
        if requester is None:
            raise UserNotFoundError(str(requester_id))

        chain = self._approvals.chain
        now = self._clock.now()

        with LogContext.bind(actor_id=str(requester_id)):
            with self._session.begin_nested():
                model = Requisition(
                    requester=requester,
                    status=RequestStatus.PENDING.value,
                    created_at=now,
                    updated_at=now,
                    **values,
                )
                self._session.add(model)
                self._session.flush()

                approver_id = self._approvals.directory.resolve_approver(
                    chain.first_stage, requester.to_dto(),
                )
                first = self._approvals.create_approval(
                    model.id, approver_id, chain.first_stage,
                )

            logger.info(
                "requisition_created",
                extra={
                    "requisition_id": str(model.id),
                    "first_stage": chain.first_stage,
                    "first_approval_id": str(first.id),
                },
            )

        return model.to_detail()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_requisition(self, requisition_id: UUID) -> RequisitionDetail:
        return self._load(requisition_id).to_detail()

    def get_requisitions_by_requester(self, requester_id: UUID) -> list[RequisitionDetail]:
        return self._selector.by_requester(requester_id)

    def get_all_requisitions(
        self,
        caller_role: str,
        caller_department: str | None = None,
    ) -> list[RequisitionDetail]:
        """All requisitions visible to the caller, newest first."""
        scope = resolve_listing_scope(self._access, caller_role, caller_department)
        if not scope.allowed:
            raise ForbiddenActionError("list requisitions", role_value(caller_role), scope.reason)
        return self._selector.visible(
            department=scope.department,
            department_scoped=scope.department_scoped,
        )

    def search_requisitions(
        self,
        filters: RequisitionSearch,
        caller_role: str,
        caller_department: str | None = None,
    ) -> list[RequisitionDetail]:
        scope = resolve_listing_scope(self._access, caller_role, caller_department)
        if not scope.allowed:
            raise ForbiddenActionError("search requisitions", role_value(caller_role), scope.reason)
        return self._selector.search(
            filters,
            department=scope.department,
            department_scoped=scope.department_scoped,
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update_requisition(
        self,
        requisition_id: UUID,
        changes: RequisitionUpdate | dict[str, Any],
        actor: Actor,
    ) -> RequisitionDetail:
        """Apply the supplied fields only. Status is never changed here."""
        if isinstance(changes, dict):
            changes = RequisitionUpdate.from_dict(changes)

        model = self._load(requisition_id, for_update=True)
        decision = check_update_access(
            self._access,
            actor_id=actor.user_id,
            actor_role=actor.role,
            requester_id=model.requester_id,
            status=model.status,
        )
        self._enforce(decision, "update requisition", actor, model)

        values = changes.changes()
        if not values:
            return model.to_detail()

        for name, value in values.items():
            setattr(model, name, value)
        model.updated_at = self._clock.now()
        self._session.flush()

        logger.info(
            "requisition_updated",
            extra={
                "requisition_id": str(model.id),
                "actor_id": str(actor.user_id),
                "fields": sorted(values),
            },
        )
        return model.to_detail()

    def delete_requisition(self, requisition_id: UUID, actor: Actor) -> None:
        """Delete a requisition and, by cascade, all of its approvals."""
        model = self._load(requisition_id, for_update=True)
        decision = check_delete_access(
            self._access,
            actor_id=actor.user_id,
            actor_role=actor.role,
            requester_id=model.requester_id,
            status=model.status,
        )
        self._enforce(decision, "delete requisition", actor, model)

        approval_count = len(model.approvals)
        self._session.delete(model)
        self._session.flush()

        logger.info(
            "requisition_deleted",
            extra={
                "requisition_id": str(requisition_id),
                "actor_id": str(actor.user_id),
                "approvals_removed": approval_count,
            },
        )

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_vehicle_and_driver(
        self,
        requisition_id: UUID,
        vehicle_id: UUID,
        driver_id: UUID,
        actor: Actor | None = None,
    ) -> RequisitionDetail:
        """Bind a vehicle and a driver to an APPROVED requisition."""
        if actor is not None:
            decision = check_assign_access(self._access, actor.role)
            if not decision.allowed:
                raise ForbiddenActionError("assign resources", actor.role, decision.reason)

        model = self._load(requisition_id, for_update=True)
        if model.status != RequestStatus.APPROVED.value:
            raise RequisitionNotApprovedError(str(requisition_id), model.status)

        with LogContext.bind(requisition_id=str(model.id)):
            vehicle, driver = self._guard.lock_available(vehicle_id, driver_id)
            self._guard.ensure_free(
                as_utc(model.required_at),
                vehicle_id=vehicle_id,
                driver_id=driver_id,
                exclude_requisition_id=model.id,
            )

        model.vehicle = vehicle
        model.driver = driver
        model.updated_at = self._clock.now()
        self._session.flush()

        logger.info(
            "resources_assigned",
            extra={
                "requisition_id": str(model.id),
                "vehicle_id": str(vehicle_id),
                "driver_id": str(driver_id),
            },
        )
        return model.to_detail()


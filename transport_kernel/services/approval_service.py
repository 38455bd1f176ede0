"""
transport_kernel.services.approval_service -- Approval lifecycle management.

Responsibility:
    Creates approval stages, records decisions, and drives the owning
    requisition through the approval chain: a rejection settles it as
    REJECTED, an approval opens the next stage or settles it as APPROVED.

Architecture position:
    Kernel > Services.  May import from domain/, models/, selectors/, db/.

Invariants enforced:
    - Decisions are APPROVED or REJECTED, made once, by the stage's role or
      an override role.
    - At most one PENDING approval per requisition (service check plus the
      partial unique index).
    - Stage order comes from the injected ``ApprovalChain``.
    - The decision, the requisition status change and the next-stage
      creation run inside one SAVEPOINT: all or nothing.

Failure modes:
    - ApprovalNotFoundError / RequisitionNotFoundError / UserNotFoundError.
    - InvalidDecisionError, InvalidApproverRoleError.
    - UnauthorizedApproverError (403) before any state is touched.
    - ApprovalAlreadyResolvedError on a second decision.
    - DuplicatePendingApprovalError, RequisitionNotPendingError.
    - NoApproverAvailableError while opening the next stage (decision
      rolled back, approval stays PENDING).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from transport_kernel.domain.approval import (
    DEFAULT_APPROVAL_CHAIN,
    ApprovalChain,
    ApprovalInfo,
    ApproverDirectory,
    DecisionOutcome,
    PendingApproval,
    RequestStatus,
    can_transition,
    parse_decision,
)
from transport_kernel.domain.clock import Clock
from transport_kernel.domain.roles import Role, role_value
from transport_kernel.exceptions import (
    ApprovalAlreadyResolvedError,
    ApprovalNotFoundError,
    DuplicatePendingApprovalError,
    RequisitionNotFoundError,
    RequisitionNotPendingError,
    UnauthorizedApproverError,
    UserNotFoundError,
)
from transport_kernel.logging_config import LogContext, get_logger
from transport_kernel.models.approval import Approval
from transport_kernel.models.requisition import Requisition
from transport_kernel.models.user import User
from transport_kernel.selectors.approval_selector import ApprovalSelector
from transport_kernel.services.approver_directory import DepartmentApproverDirectory
from transport_kernel.services.base import BaseService

logger = get_logger("services.approval")


class ApprovalService(BaseService[Approval]):
    """Manages approval stages and their effect on requisitions."""

    def __init__(
        self,
        session: Session,
        chain: ApprovalChain | None = None,
        directory: ApproverDirectory | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(session, clock)
        self.chain = chain or DEFAULT_APPROVAL_CHAIN
        self.directory = directory or DepartmentApproverDirectory(session)
        self._selector = ApprovalSelector(session)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_approval(self, approval_id: UUID, *, for_update: bool = False) -> Approval:
        stmt = select(Approval).where(Approval.id == approval_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        model = self.session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise ApprovalNotFoundError(str(approval_id))
        return model

    def _load_requisition(
        self, requisition_id: UUID, *, for_update: bool = False,
    ) -> Requisition:
        stmt = select(Requisition).where(Requisition.id == requisition_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        model = self.session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise RequisitionNotFoundError(str(requisition_id))
        return model

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_approval(
        self,
        requisition_id: UUID,
        approver_user_id: UUID,
        approver_role: Role | str,
        comments: str | None = None,
    ) -> ApprovalInfo:
        """Open a PENDING approval stage on a requisition."""
        role = role_value(approver_role)
        stage_index = self.chain.stage_index(role)

        requisition = self._load_requisition(requisition_id, for_update=True)
        if self.session.get(User, approver_user_id) is None:
            raise UserNotFoundError(str(approver_user_id))

        if requisition.status != RequestStatus.PENDING.value:
            raise RequisitionNotPendingError(str(requisition_id), requisition.status)

        pending = self._selector.pending_for_requisition(requisition_id)
        if pending is not None:
            raise DuplicatePendingApprovalError(str(requisition_id), str(pending.id))

        return self._add_stage(
            requisition, approver_user_id, role, stage_index, comments,
        ).to_dto()

    def _add_stage(
        self,
        requisition: Requisition,
        approver_id: UUID,
        role: str,
        stage_index: int,
        comments: str | None = None,
    ) -> Approval:
        model = Approval(
            requisition=requisition,
            approver_id=approver_id,
            approver_role=role,
            stage_index=stage_index,
            status=RequestStatus.PENDING.value,
            comments=comments,
            created_at=self.clock.now(),
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "approval_created",
            extra={
                "approval_id": str(model.id),
                "requisition_id": str(requisition.id),
                "approver_id": str(approver_id),
                "approver_role": role,
                "stage_index": stage_index,
            },
        )
        return model

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def process_approval(
        self,
        approval_id: UUID,
        decision: RequestStatus | str,
        acting_role: Role | str,
        comments: str | None = None,
        actor_id: UUID | None = None,
    ) -> DecisionOutcome:
        """Record a decision and advance or settle the requisition.

        Checks run in order: existence, decision value, authorization,
        still-pending.  Nothing is written unless all pass.
        """
        model = self._load_approval(approval_id, for_update=True)
        new_status = parse_decision(decision)
        acting = role_value(acting_role)

        if not self.chain.can_decide(acting, model.approver_role):
            logger.warning(
                "approval_unauthorized",
                extra={
                    "approval_id": str(approval_id),
                    "acting_role": acting,
                    "required_role": model.approver_role,
                },
            )
            raise UnauthorizedApproverError(str(approval_id), acting, model.approver_role)

        current = RequestStatus(model.status)
        if not can_transition(current, new_status):
            raise ApprovalAlreadyResolvedError(str(approval_id), current.value)

        requisition = self._load_requisition(model.requisition_id, for_update=True)
        if requisition.status != RequestStatus.PENDING.value:
            raise RequisitionNotPendingError(str(requisition.id), requisition.status)

        with LogContext.bind(
            approval_id=str(approval_id),
            requisition_id=str(requisition.id),
            actor_id=str(actor_id) if actor_id is not None else None,
        ):
            with self.session.begin_nested():
                next_model = self._apply_decision(
                    model, requisition, new_status, comments, actor_id,
                )

            logger.info(
                "approval_decision_recorded",
                extra={
                    "decision": new_status.value,
                    "acting_role": acting,
                    "approver_role": model.approver_role,
                    "requisition_status": requisition.status,
                    "next_approval_id": str(next_model.id) if next_model else None,
                },
            )

        return DecisionOutcome(
            approval=model.to_dto(),
            requisition_status=RequestStatus(requisition.status),
            next_approval=next_model.to_dto() if next_model is not None else None,
        )

    def _apply_decision(
        self,
        model: Approval,
        requisition: Requisition,
        new_status: RequestStatus,
        comments: str | None,
        actor_id: UUID | None,
    ) -> Approval | None:
        now = self.clock.now()
        model.status = new_status.value
        if comments is not None:
            model.comments = comments
        model.decided_at = now
        model.decided_by_id = actor_id
        requisition.updated_at = now
        # The decided stage must leave PENDING before the next one is inserted.
        self.session.flush()

        if new_status == RequestStatus.REJECTED:
            requisition.status = RequestStatus.REJECTED.value
            self.session.flush()
            logger.info("requisition_rejected", extra={"stage": model.approver_role})
            return None

        next_role = self.chain.next_stage(model.approver_role)
        if next_role is None:
            requisition.status = RequestStatus.APPROVED.value
            self.session.flush()
            logger.info("requisition_approved", extra={"final_stage": model.approver_role})
            return None

        approver_id = self.directory.resolve_approver(
            next_role, requisition.requester.to_dto(),
        )
        return self._add_stage(
            requisition, approver_id, next_role, self.chain.stage_index(next_role),
        )

    # ------------------------------------------------------------------
    # Reads and deletion
    # ------------------------------------------------------------------

    def get_pending_approvals_for_user(
        self, user_id: UUID, role: Role | str,
    ) -> list[PendingApproval]:
        return self._selector.pending_for_user(user_id, role)

    def get_approval_by_id(self, approval_id: UUID) -> ApprovalInfo:
        return self._load_approval(approval_id).to_dto()

    def get_approvals_for_requisition(self, requisition_id: UUID) -> list[ApprovalInfo]:
        """Ordered history of a requisition's stages."""
        self._load_requisition(requisition_id)
        return self._selector.history(requisition_id)

    def delete_approval(self, approval_id: UUID) -> None:
        """Withdraw an open stage. Decided approvals are never deleted."""
        model = self._load_approval(approval_id, for_update=True)
        if model.status != RequestStatus.PENDING.value:
            raise ApprovalAlreadyResolvedError(str(approval_id), model.status)

        requisition_id = model.requisition_id
        # delete-orphan cascade removes the row
        model.requisition.approvals.remove(model)
        self.session.flush()

        logger.info(
            "approval_deleted",
            extra={
                "approval_id": str(approval_id),
                "requisition_id": str(requisition_id),
            },
        )

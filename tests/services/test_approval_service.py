"""
Tests for ApprovalService -- approval stages and decisions.

Covers:
- create_approval(): happy path, unknown stage role, duplicate pending,
  requisition no longer pending, unknown requisition / approver
- process_approval(): HOD -> TRANSPORT_OFFICER -> APPROVED, rejection at
  either stage, override role, wrong role, second decision, bad decision
  value, rollback when the next stage has no approver
- reads: pending approvals per user, single approval, per-requisition history
- delete_approval(): pending only
"""

from uuid import uuid4

import pytest
from sqlalchemy import select

from transport_kernel.domain.approval import RequestStatus
from transport_kernel.domain.roles import Department, Role
from transport_kernel.exceptions import (
    ApprovalAlreadyResolvedError,
    ApprovalNotFoundError,
    DuplicatePendingApprovalError,
    ImmutabilityViolationError,
    InvalidApproverRoleError,
    InvalidDecisionError,
    NoApproverAvailableError,
    RequisitionNotFoundError,
    RequisitionNotPendingError,
    UnauthorizedApproverError,
    UserNotFoundError,
)
from transport_kernel.models.approval import Approval


class TestCreateApproval:
    """create_approval() opens a PENDING stage."""

    def test_new_requisition_has_one_pending_hod_stage(self, create_requisition, hod):
        detail = create_requisition()

        assert detail.status == RequestStatus.PENDING
        assert len(detail.approvals) == 1
        first = detail.approvals[0]
        assert first.approver_role == "HOD"
        assert first.approver_id == hod.id
        assert first.stage_index == 0
        assert first.is_pending

    def test_duplicate_pending_rejected(self, approval_service, create_requisition, hod):
        detail = create_requisition()

        with pytest.raises(DuplicatePendingApprovalError) as exc_info:
            approval_service.create_approval(detail.id, hod.id, Role.HOD)

        assert exc_info.value.pending_approval_id == str(detail.approvals[0].id)

    def test_unknown_role_rejected(self, approval_service, create_requisition, admin):
        detail = create_requisition()

        with pytest.raises(InvalidApproverRoleError):
            approval_service.create_approval(detail.id, admin.id, "ADMIN")

    def test_unknown_requisition(self, approval_service, hod):
        with pytest.raises(RequisitionNotFoundError):
            approval_service.create_approval(uuid4(), hod.id, "HOD")

    def test_unknown_approver(self, approval_service, create_requisition):
        detail = create_requisition()
        with pytest.raises(UserNotFoundError):
            approval_service.create_approval(detail.id, uuid4(), "HOD")

    def test_settled_requisition_rejected(
        self, approval_service, create_requisition, hod,
    ):
        detail = create_requisition()
        approval_service.process_approval(detail.approvals[0].id, "REJECTED", "HOD")

        with pytest.raises(RequisitionNotPendingError):
            approval_service.create_approval(detail.id, hod.id, "HOD")

    def test_withdrawn_stage_can_be_reopened(
        self, approval_service, create_requisition, hod,
    ):
        detail = create_requisition()
        approval_service.delete_approval(detail.approvals[0].id)

        reopened = approval_service.create_approval(
            detail.id, hod.id, "HOD", comments="reassigned",
        )

        assert reopened.is_pending
        assert reopened.comments == "reassigned"


class TestProcessApproval:
    """process_approval() records decisions and drives the requisition."""

    def test_hod_approval_opens_transport_officer_stage(
        self, approval_service, create_requisition, transport_officer, hod,
    ):
        detail = create_requisition()

        outcome = approval_service.process_approval(
            detail.approvals[0].id, "APPROVED", "HOD", comments="ok", actor_id=hod.id,
        )

        assert outcome.approval.status == RequestStatus.APPROVED
        assert outcome.approval.comments == "ok"
        assert outcome.approval.decided_by_id == hod.id
        assert outcome.approval.decided_at is not None
        assert outcome.requisition_status == RequestStatus.PENDING
        assert not outcome.is_final
        assert outcome.next_approval is not None
        assert outcome.next_approval.approver_role == "TRANSPORT_OFFICER"
        assert outcome.next_approval.approver_id == transport_officer.id
        assert outcome.next_approval.stage_index == 1

    def test_acting_role_and_decision_case_insensitive(
        self, approval_service, create_requisition,
    ):
        detail = create_requisition()

        outcome = approval_service.process_approval(detail.approvals[0].id, "approved", " hod ")

        assert outcome.approval.status == RequestStatus.APPROVED
        assert outcome.next_approval.approver_role == "TRANSPORT_OFFICER"

        final = approval_service.process_approval(
            outcome.next_approval.id, "Approved", "transport_officer",
        )
        assert final.requisition_status == RequestStatus.APPROVED

    def test_final_stage_approval_settles_requisition(
        self, approval_service, workflow, create_requisition,
    ):
        detail = create_requisition()
        first = approval_service.process_approval(detail.approvals[0].id, "APPROVED", "HOD")

        outcome = approval_service.process_approval(
            first.next_approval.id, "APPROVED", "TRANSPORT_OFFICER",
        )

        assert outcome.is_final
        assert outcome.requisition_status == RequestStatus.APPROVED
        assert outcome.next_approval is None
        reloaded = workflow.get_requisition(detail.id)
        assert reloaded.status == RequestStatus.APPROVED
        assert reloaded.pending_approval is None
        assert [a.status for a in reloaded.approvals] == [
            RequestStatus.APPROVED, RequestStatus.APPROVED,
        ]

    def test_hod_rejection_settles_without_next_stage(
        self, approval_service, workflow, create_requisition,
    ):
        detail = create_requisition()

        outcome = approval_service.process_approval(
            detail.approvals[0].id, RequestStatus.REJECTED, Role.HOD, comments="no budget",
        )

        assert outcome.requisition_status == RequestStatus.REJECTED
        assert outcome.next_approval is None
        history = approval_service.get_approvals_for_requisition(detail.id)
        assert len(history) == 1
        assert workflow.get_requisition(detail.id).status == RequestStatus.REJECTED

    def test_transport_officer_rejection(self, approval_service, create_requisition):
        detail = create_requisition()
        first = approval_service.process_approval(detail.approvals[0].id, "APPROVED", "HOD")

        outcome = approval_service.process_approval(
            first.next_approval.id, "REJECTED", "TRANSPORT_OFFICER",
        )

        assert outcome.requisition_status == RequestStatus.REJECTED

    def test_lowercase_decision_accepted(self, approval_service, create_requisition):
        detail = create_requisition()
        outcome = approval_service.process_approval(detail.approvals[0].id, "approved", "HOD")
        assert outcome.approval.status == RequestStatus.APPROVED

    def test_admin_overrides_any_stage(self, approval_service, create_requisition, admin):
        detail = create_requisition()

        first = approval_service.process_approval(
            detail.approvals[0].id, "APPROVED", "ADMIN", actor_id=admin.id,
        )
        final = approval_service.process_approval(
            first.next_approval.id, "APPROVED", "ADMIN", actor_id=admin.id,
        )

        assert final.requisition_status == RequestStatus.APPROVED
        assert final.approval.decided_by_id == admin.id

    def test_wrong_role_is_unauthorized_and_changes_nothing(
        self, approval_service, create_requisition,
    ):
        detail = create_requisition()
        approval_id = detail.approvals[0].id

        with pytest.raises(UnauthorizedApproverError) as exc_info:
            approval_service.process_approval(approval_id, "APPROVED", "TRANSPORT_OFFICER")

        assert exc_info.value.http_status == 403
        assert approval_service.get_approval_by_id(approval_id).is_pending

    def test_requester_role_cannot_decide(self, approval_service, create_requisition):
        detail = create_requisition()
        with pytest.raises(UnauthorizedApproverError):
            approval_service.process_approval(detail.approvals[0].id, "APPROVED", "USER")

    def test_second_decision_rejected(self, approval_service, create_requisition):
        detail = create_requisition()
        approval_id = detail.approvals[0].id
        approval_service.process_approval(approval_id, "REJECTED", "HOD")

        with pytest.raises(ApprovalAlreadyResolvedError) as exc_info:
            approval_service.process_approval(approval_id, "APPROVED", "HOD")

        assert exc_info.value.status == "REJECTED"

    @pytest.mark.parametrize("decision", ["PENDING", "MAYBE", ""])
    def test_invalid_decision(self, approval_service, create_requisition, decision):
        detail = create_requisition()
        with pytest.raises(InvalidDecisionError):
            approval_service.process_approval(detail.approvals[0].id, decision, "HOD")

    def test_unknown_approval(self, approval_service):
        with pytest.raises(ApprovalNotFoundError):
            approval_service.process_approval(uuid4(), "APPROVED", "HOD")

    def test_missing_next_approver_rolls_back_decision(
        self, session, user_service, approval_service, create_requisition, transport_officer,
    ):
        detail = create_requisition()
        user_service.deactivate_user(transport_officer.id)
        approval_id = detail.approvals[0].id

        with pytest.raises(NoApproverAvailableError):
            approval_service.process_approval(approval_id, "APPROVED", "HOD")

        assert approval_service.get_approval_by_id(approval_id).is_pending
        assert len(approval_service.get_approvals_for_requisition(detail.id)) == 1

    def test_decision_is_logged(self, approval_service, create_requisition, captured_logs):
        detail = create_requisition()
        approval_service.process_approval(detail.approvals[0].id, "APPROVED", "HOD")

        records = [r for r in captured_logs() if r["message"] == "approval_decision_recorded"]
        assert len(records) == 1
        assert records[0]["decision"] == "APPROVED"
        assert records[0]["approval_id"] == str(detail.approvals[0].id)


class TestDecidedApprovalImmutability:
    """Decided approval rows reject further column changes at flush time."""

    def test_direct_update_of_decided_row_raises(
        self, session, approval_service, create_requisition,
    ):
        detail = create_requisition()
        approval_id = detail.approvals[0].id
        approval_service.process_approval(approval_id, "REJECTED", "HOD")

        model = session.execute(
            select(Approval).where(Approval.id == approval_id)
        ).scalar_one()
        model.comments = "rewritten"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestApprovalReads:
    """Pending queue, single approval, history."""

    def test_pending_for_user_newest_first(
        self, approval_service, create_requisition, hod,
    ):
        older = create_requisition(purpose="Older")
        newer = create_requisition(purpose="Newer")

        pending = approval_service.get_pending_approvals_for_user(hod.id, "HOD")

        assert [p.requisition.id for p in pending] == [newer.id, older.id]
        assert pending[0].requester.id == newer.requisition.requester_id

    def test_pending_for_user_excludes_decided_and_other_roles(
        self, approval_service, create_requisition, hod, transport_officer,
    ):
        detail = create_requisition()
        approval_service.process_approval(detail.approvals[0].id, "APPROVED", "HOD")

        assert approval_service.get_pending_approvals_for_user(hod.id, "HOD") == []
        assert approval_service.get_pending_approvals_for_user(hod.id, "TRANSPORT_OFFICER") == []
        queue = approval_service.get_pending_approvals_for_user(
            transport_officer.id, Role.TRANSPORT_OFFICER,
        )
        assert len(queue) == 1

    def test_history_is_ordered_by_stage(self, approval_service, create_requisition):
        detail = create_requisition()
        approval_service.process_approval(detail.approvals[0].id, "APPROVED", "HOD")

        history = approval_service.get_approvals_for_requisition(detail.id)

        assert [a.approver_role for a in history] == ["HOD", "TRANSPORT_OFFICER"]
        assert [a.status for a in history] == [RequestStatus.APPROVED, RequestStatus.PENDING]

    def test_history_for_unknown_requisition(self, approval_service):
        with pytest.raises(RequisitionNotFoundError):
            approval_service.get_approvals_for_requisition(uuid4())

    def test_department_heads_see_only_their_department(
        self, approval_service, create_user, create_requisition, approvers,
    ):
        eee_hod = create_user(Role.HOD, Department.EEE)
        eee_requester = create_user(Role.USER, Department.EEE)

        create_requisition()
        eee_detail = create_requisition(requester_user=eee_requester)

        queue = approval_service.get_pending_approvals_for_user(eee_hod.id, "HOD")
        assert [p.requisition.id for p in queue] == [eee_detail.id]


class TestDeleteApproval:
    def test_pending_approval_deleted(self, approval_service, create_requisition):
        detail = create_requisition()
        approval_id = detail.approvals[0].id

        approval_service.delete_approval(approval_id)

        with pytest.raises(ApprovalNotFoundError):
            approval_service.get_approval_by_id(approval_id)
        assert approval_service.get_approvals_for_requisition(detail.id) == []

    def test_decided_approval_cannot_be_deleted(self, approval_service, create_requisition):
        detail = create_requisition()
        approval_id = detail.approvals[0].id
        approval_service.process_approval(approval_id, "REJECTED", "HOD")

        with pytest.raises(ApprovalAlreadyResolvedError):
            approval_service.delete_approval(approval_id)

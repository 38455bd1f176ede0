"""
Hypothesis-based fuzzing of the approval chain.

Properties checked:
- For any sequence of decisions, a requisition ends in exactly one of
  PENDING / APPROVED / REJECTED and never has more than one PENDING stage.
- A requisition is APPROVED only after every stage approved, in chain order.
- Any REJECTED stage settles the requisition as REJECTED and opens nothing.
- Decisions by roles outside the stage (and not an override role) change
  nothing.
- Arbitrary stage lists either build a valid ApprovalChain or raise
  ValueError, and a valid chain walks each stage exactly once.
"""

from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from transport_kernel.domain.approval import ApprovalChain, RequestStatus
from transport_kernel.domain.roles import ALL_ROLES, Role
from transport_kernel.exceptions import UnauthorizedApproverError

ACTING_ROLES = st.sampled_from(sorted(ALL_ROLES))
DECISIONS = st.sampled_from(["APPROVED", "REJECTED"])

FUZZ_SETTINGS = settings(
    max_examples=40,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


class TestChainShapeFuzzing:
    @given(stages=st.lists(ACTING_ROLES, max_size=5), overrides=st.lists(ACTING_ROLES, max_size=2))
    @settings(max_examples=200, deadline=None)
    def test_chain_builds_or_rejects(self, stages, overrides):
        try:
            chain = ApprovalChain(stages=tuple(stages), override_roles=tuple(overrides))
        except ValueError:
            assert (
                not stages
                or len(set(stages)) != len(stages)
                or set(stages) & set(overrides)
            )
            return

        walked = [chain.first_stage]
        while (nxt := chain.next_stage(walked[-1])) is not None:
            walked.append(nxt)
        assert walked == list(stages)
        assert [chain.stage_index(s) for s in walked] == list(range(len(stages)))


class TestDecisionSequenceFuzzing:
    @given(steps=st.lists(st.tuples(ACTING_ROLES, DECISIONS), min_size=1, max_size=6))
    @FUZZ_SETTINGS
    def test_random_decisions_keep_invariants(
        self, session, create_requisition, approval_service, workflow, steps,
    ):
        nested = session.begin_nested()
        try:
            detail = create_requisition(
                required_at=datetime(2024, 6, 1, tzinfo=UTC) + timedelta(days=len(steps)),
            )
            chain = approval_service.chain
            approved_stages: list[str] = []

            for acting, decision in steps:
                current = workflow.get_requisition(detail.id)
                pending = current.pending_approval
                if pending is None:
                    break

                if not chain.can_decide(acting, pending.approver_role):
                    with pytest.raises(UnauthorizedApproverError):
                        approval_service.process_approval(pending.id, decision, acting)
                    after = workflow.get_requisition(detail.id)
                    assert after.pending_approval.id == pending.id
                    continue

                outcome = approval_service.process_approval(pending.id, decision, acting)
                if decision == "REJECTED":
                    assert outcome.requisition_status == RequestStatus.REJECTED
                    assert outcome.next_approval is None
                else:
                    approved_stages.append(pending.approver_role)

            final = workflow.get_requisition(detail.id)
            pending_count = sum(1 for a in final.approvals if a.is_pending)

            if final.status == RequestStatus.PENDING:
                assert pending_count == 1
            else:
                assert pending_count == 0

            if final.status == RequestStatus.APPROVED:
                assert approved_stages == list(chain.stages)
                assert all(a.status == RequestStatus.APPROVED for a in final.approvals)

            if final.status == RequestStatus.REJECTED:
                assert final.approvals[-1].status == RequestStatus.REJECTED

            roles_in_order = [a.approver_role for a in final.approvals]
            assert roles_in_order == list(chain.stages[: len(roles_in_order)])
        finally:
            nested.rollback()

    @given(acting=ACTING_ROLES)
    @FUZZ_SETTINGS
    def test_only_stage_or_override_roles_decide(
        self, session, create_requisition, approval_service, acting,
    ):
        nested = session.begin_nested()
        try:
            detail = create_requisition()
            approval_id = detail.pending_approval.id
            allowed = acting in (Role.HOD.value, Role.ADMIN.value)

            if allowed:
                outcome = approval_service.process_approval(approval_id, "APPROVED", acting)
                assert outcome.approval.status == RequestStatus.APPROVED
            else:
                with pytest.raises(UnauthorizedApproverError):
                    approval_service.process_approval(approval_id, "APPROVED", acting)
                assert approval_service.get_approval_by_id(approval_id).is_pending
        finally:
            nested.rollback()

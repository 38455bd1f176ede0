"""
Module: transport_kernel.selectors.approval_selector
Responsibility: Read-only queries over approval stages: an approver's inbox
    and a requisition's ordered history.
Architecture position: Kernel > Selectors.

Ordering:
    - Inbox: newest first (created_at DESC).
    - History: traversal order (created_at ASC, stage_index ASC).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from transport_kernel.domain.approval import ApprovalInfo, PendingApproval, RequestStatus
from transport_kernel.domain.roles import Role, role_value
from transport_kernel.models.approval import Approval
from transport_kernel.selectors.base import BaseSelector


class ApprovalSelector(BaseSelector[Approval]):
    """Selector for approval queries."""

    def pending_for_user(self, user_id: UUID, role: Role | str) -> list[PendingApproval]:
        """PENDING approvals assigned to this approver in this role."""
        rows = self.session.execute(
            select(Approval)
            .where(
                Approval.approver_id == user_id,
                Approval.approver_role == role_value(role),
                Approval.status == RequestStatus.PENDING.value,
            )
            .order_by(Approval.created_at.desc(), Approval.id)
        ).scalars().all()

        return [
            PendingApproval(
                approval=row.to_dto(),
                requisition=row.requisition.to_dto(),
                requester=row.requisition.requester.to_dto(),
            )
            for row in rows
        ]

    def history(self, requisition_id: UUID) -> list[ApprovalInfo]:
        rows = self.session.execute(
            select(Approval)
            .where(Approval.requisition_id == requisition_id)
            .order_by(Approval.created_at, Approval.stage_index)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def pending_for_requisition(self, requisition_id: UUID) -> ApprovalInfo | None:
        """The open stage, if any."""
        row = self.session.execute(
            select(Approval).where(
                Approval.requisition_id == requisition_id,
                Approval.status == RequestStatus.PENDING.value,
            )
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

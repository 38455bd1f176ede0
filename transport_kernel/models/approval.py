"""
Module: transport_kernel.models.approval
Responsibility: ORM persistence for approval stages of a requisition.

Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models.

Invariants enforced:
    - status is PENDING, APPROVED or REJECTED (ck_approvals_valid_status).
    - At most one PENDING approval per requisition: partial unique index
      ix_approvals_one_pending (PostgreSQL and SQLite both honour WHERE).
    - Decided approvals are frozen: the before_update listener rejects any
      change to a row whose stored status is no longer PENDING.
    - Ordering by (created_at, stage_index) is the traversal history.

Failure modes:
    - IntegrityError on a second PENDING approval for the same requisition.
    - ImmutabilityViolationError on mutating a decided approval.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    event,
    inspect,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from transport_kernel.db.base import Base, UUIDString, utc_now
from transport_kernel.domain.clock import as_utc
from transport_kernel.exceptions import ImmutabilityViolationError
from transport_kernel.models.requisition import Requisition
from transport_kernel.models.user import User

if TYPE_CHECKING:
    from transport_kernel.domain.approval import ApprovalInfo

_PENDING = "PENDING"


class Approval(Base):
    """One stage's decision on a requisition.

    Created PENDING, decided exactly once, never deleted individually once
    decided (only by cascade from the requisition).
    """

    __tablename__ = "approvals"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="ck_approvals_valid_status",
        ),
        CheckConstraint("stage_index >= 0", name="ck_approvals_stage_index"),
        Index(
            "ix_approvals_one_pending",
            "requisition_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        # get_pending_approvals_for_user()
        Index(
            "ix_approvals_approver_status",
            "approver_id", "approver_role", "status", "created_at",
        ),
        Index("ix_approvals_requisition_created", "requisition_id", "created_at"),
    )

    requisition_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("requisitions.id", ondelete="CASCADE"),
        nullable=False,
    )
    approver_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    approver_role: Mapped[str] = mapped_column(String(32), nullable=False)
    stage_index: Mapped[int] = mapped_column(nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=_PENDING)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    decided_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now,
    )

    requisition: Mapped[Requisition] = relationship(
        Requisition, back_populates="approvals",
    )
    approver: Mapped[User] = relationship(
        User, foreign_keys=[approver_id], lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Approval {self.id} requisition={self.requisition_id} "
            f"role={self.approver_role} status={self.status}>"
        )

    def to_dto(self) -> ApprovalInfo:
        """Convert ORM model to frozen domain DTO."""
        from transport_kernel.domain.approval import ApprovalInfo, RequestStatus

        return ApprovalInfo(
            id=self.id,
            requisition_id=self.requisition_id,
            approver_id=self.approver_id,
            approver_role=self.approver_role,
            stage_index=self.stage_index,
            status=RequestStatus(self.status),
            created_at=as_utc(self.created_at),
            comments=self.comments,
            decided_at=as_utc(self.decided_at),
            decided_by_id=self.decided_by_id,
        )


# =============================================================================
# ORM-Level Immutability for decided approvals
# =============================================================================


@event.listens_for(Approval, "before_update")
def prevent_decided_approval_update(mapper, connection, target):
    """Reject any column change to an approval that was already decided."""
    state = inspect(target)
    changed = [
        attr for attr in state.attrs
        if attr.key in mapper.columns and attr.history.has_changes()
    ]
    if not changed:
        return

    status_history = state.attrs.status.history
    if status_history.deleted:
        stored_status = status_history.deleted[0]
    elif status_history.unchanged:
        stored_status = status_history.unchanged[0]
    else:
        stored_status = target.status

    if stored_status != _PENDING:
        raise ImmutabilityViolationError(
            entity_type="Approval",
            entity_id=str(target.id),
            reason=f"Approval already {stored_status} -- cannot modify",
        )

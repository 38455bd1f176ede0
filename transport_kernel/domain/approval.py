"""
Approval domain types (``transport_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for the multi-stage approval workflow: the shared
PENDING / APPROVED / REJECTED lifecycle, the data-driven approval chain,
and the records returned by the approval service.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/`` or outer layers.

Invariants enforced
-------------------
* ``STATUS_TRANSITIONS`` is the only lifecycle: PENDING moves once, to
  APPROVED or REJECTED, and both are terminal.  Requisitions and approvals
  share it.
* ``ApprovalChain`` stages are non-empty and unique, and no override role
  is also a stage.
* The next stage after role R is the stage at ``index(R) + 1``; the last
  stage has no successor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from transport_kernel.domain.roles import Role, role_value
from transport_kernel.exceptions import InvalidApproverRoleError, InvalidDecisionError

if TYPE_CHECKING:
    from transport_kernel.domain.requisition import RequisitionInfo
    from transport_kernel.domain.resources import UserSummary


# =========================================================================
# Status lifecycle
# =========================================================================


class RequestStatus(str, Enum):
    """Lifecycle states shared by requisitions and approvals."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


STATUS_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({
        RequestStatus.APPROVED,
        RequestStatus.REJECTED,
    }),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}

DECISION_STATUSES: frozenset[RequestStatus] = frozenset({
    RequestStatus.APPROVED,
    RequestStatus.REJECTED,
})


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return target in STATUS_TRANSITIONS.get(current, frozenset())


def parse_decision(value: RequestStatus | str) -> RequestStatus:
    """Coerce a decision value, raising InvalidDecisionError if not a decision."""
    raw = value.value if isinstance(value, RequestStatus) else str(value).strip().upper()
    try:
        status = RequestStatus(raw)
    except ValueError:
        raise InvalidDecisionError(str(value)) from None
    if status not in DECISION_STATUSES:
        raise InvalidDecisionError(str(raw))
    return status


# =========================================================================
# Approval chain
# =========================================================================


@dataclass(frozen=True)
class ApprovalChain:
    """Ordered approval stages plus the roles allowed to decide any stage.

    The default chain is HOD, then TRANSPORT_OFFICER, with ADMIN as the
    override role.  Adding a stage is a configuration change.
    """

    stages: tuple[str, ...] = (Role.HOD.value, Role.TRANSPORT_OFFICER.value)
    override_roles: tuple[str, ...] = (Role.ADMIN.value,)

    def __post_init__(self) -> None:
        if not self.stages:
            raise ValueError("ApprovalChain requires at least one stage")
        if len(set(self.stages)) != len(self.stages):
            raise ValueError(f"ApprovalChain stages must be unique: {self.stages}")
        overlap = set(self.stages) & set(self.override_roles)
        if overlap:
            raise ValueError(
                f"Override roles cannot also be stages: {sorted(overlap)}"
            )

    @property
    def first_stage(self) -> str:
        return self.stages[0]

    @property
    def final_stage(self) -> str:
        return self.stages[-1]

    def is_stage(self, role: Role | str) -> bool:
        return role_value(role) in self.stages

    def stage_index(self, role: Role | str) -> int:
        """Position of ``role`` in the chain.

        Raises:
            InvalidApproverRoleError: role is not a stage.
        """
        value = role_value(role)
        if value not in self.stages:
            raise InvalidApproverRoleError(value, self.stages)
        return self.stages.index(value)

    def next_stage(self, role: Role | str) -> str | None:
        """The stage that follows ``role``, or None if ``role`` is final."""
        index = self.stage_index(role)
        if index + 1 < len(self.stages):
            return self.stages[index + 1]
        return None

    def can_decide(self, acting_role: Role | str, stage_role: Role | str) -> bool:
        """An override role decides any stage; otherwise roles must match."""
        acting = role_value(acting_role)
        return acting in self.override_roles or acting == role_value(stage_role)


DEFAULT_APPROVAL_CHAIN = ApprovalChain()


# =========================================================================
# Records
# =========================================================================


@dataclass(frozen=True)
class ApprovalInfo:
    """Snapshot of one approval stage. Immutable."""

    id: UUID
    requisition_id: UUID
    approver_id: UUID
    approver_role: str
    stage_index: int
    status: RequestStatus
    created_at: datetime
    comments: str | None = None
    decided_at: datetime | None = None
    decided_by_id: UUID | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class PendingApproval:
    """A pending approval with the requisition and requester it concerns."""

    approval: ApprovalInfo
    requisition: RequisitionInfo
    requester: UserSummary


@dataclass(frozen=True)
class DecisionOutcome:
    """Result of processing one decision.

    ``next_approval`` is set only when an approval opened the following
    stage.  ``requisition_status`` is the owning requisition's status after
    the decision.
    """

    approval: ApprovalInfo
    requisition_status: RequestStatus
    next_approval: ApprovalInfo | None = None

    @property
    def is_final(self) -> bool:
        return self.requisition_status != RequestStatus.PENDING


# =========================================================================
# ApproverDirectory protocol
# =========================================================================


class ApproverDirectory(Protocol):
    """Pluggable lookup of the user who must decide a stage."""

    def resolve_approver(self, stage_role: str, requester: UserSummary) -> UUID:
        """Return the approver's user id.

        Raises:
            NoApproverAvailableError: nobody can decide this stage.
        """
        ...

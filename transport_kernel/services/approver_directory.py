"""
transport_kernel.services.approver_directory -- who decides a stage.

Responsibility:
    Resolves the concrete user that must decide an approval stage for a
    given requester.  The default implementation reads the users table:
    department-scoped stages (HOD by default) pick an active user with that
    role in the requester's department; other stages pick any active user
    with the role.  The requester never approves their own requisition.

Architecture position:
    Kernel > Services.  Implements ``domain.approval.ApproverDirectory``.

Failure modes:
    - NoApproverAvailableError if no eligible user exists.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from transport_kernel.domain.resources import UserSummary
from transport_kernel.domain.roles import Role, role_value
from transport_kernel.exceptions import NoApproverAvailableError
from transport_kernel.logging_config import get_logger
from transport_kernel.models.user import User

logger = get_logger("services.approver_directory")


class DepartmentApproverDirectory:
    """Users-table backed approver lookup.

    Ties are broken by earliest account creation, then id, so the same
    approver is chosen every time for the same data.
    """

    def __init__(
        self,
        session: Session,
        department_scoped_stages: tuple[str, ...] = (Role.HOD.value,),
    ) -> None:
        self._session = session
        self._department_scoped = frozenset(department_scoped_stages)

    def resolve_approver(self, stage_role: str, requester: UserSummary) -> UUID:
        stage_role = role_value(stage_role)
        stmt = select(User.id).where(
            User.role == stage_role,
            User.is_active.is_(True),
            User.id != requester.id,
        )

        department = None
        if stage_role in self._department_scoped:
            department = requester.department
            if department is None:
                raise NoApproverAvailableError(stage_role, None)
            stmt = stmt.where(User.department == department)

        approver_id = self._session.execute(
            stmt.order_by(User.created_at, User.id).limit(1)
        ).scalar_one_or_none()

        if approver_id is None:
            logger.warning(
                "approver_not_found",
                extra={
                    "stage_role": stage_role,
                    "department": department,
                    "requester_id": str(requester.id),
                },
            )
            raise NoApproverAvailableError(stage_role, department)

        return approver_id

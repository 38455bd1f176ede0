"""
Service layer for users.

Creates and reads the people who request, approve and drive.  Returns
UserSummary DTOs, never ORM entities.  Credentials are handled by the
authentication layer and never pass through here.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from transport_kernel.domain.resources import UserSummary
from transport_kernel.domain.roles import Department, Role, role_value
from transport_kernel.exceptions import DuplicateUserError, UserNotFoundError
from transport_kernel.logging_config import get_logger
from transport_kernel.models.user import User
from transport_kernel.services.base import BaseService

logger = get_logger("services.user")


class UserService(BaseService[User]):
    """Create and look up users."""

    def _get_by_id(self, user_id: UUID) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    def get_user(self, user_id: UUID) -> UserSummary:
        return self._get_by_id(user_id).to_dto()

    def find_by_email(self, email: str) -> UserSummary | None:
        user = self.session.execute(
            select(User).where(User.email == email.strip().lower())
        ).scalar_one_or_none()
        return user.to_dto() if user else None

    def list_users_by_role(
        self,
        role: Role | str,
        department: Department | str | None = None,
        active_only: bool = True,
    ) -> list[UserSummary]:
        """
        List users holding a role, optionally within one department.

        Ordered by creation time, the same order the approver directory
        uses to break ties.
        """
        stmt = select(User).where(User.role == role_value(role))
        if department is not None:
            stmt = stmt.where(User.department == role_value(department))
        if active_only:
            stmt = stmt.where(User.is_active.is_(True))
        stmt = stmt.order_by(User.created_at, User.id)

        return [u.to_dto() for u in self.session.execute(stmt).scalars().all()]

    def create_user(
        self,
        name: str,
        email: str,
        role: Role | str = Role.USER,
        department: Department | str | None = None,
        designation: str | None = None,
        contact_number: str | None = None,
    ) -> UserSummary:
        """
        Create a user.

        Emails are stored lower-cased and must be unique.

        Raises:
            DuplicateUserError: email already registered.
            ValueError: unknown role or department.
        """
        normalized_email = email.strip().lower()
        role = Role(role_value(role))
        dept = Department(role_value(department)) if department is not None else None

        if self.find_by_email(normalized_email) is not None:
            raise DuplicateUserError(normalized_email)

        now = self.clock.now()
        user = User(
            name=name,
            email=normalized_email,
            role=role.value,
            department=dept.value if dept else None,
            designation=designation,
            contact_number=contact_number,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        self.session.flush()

        logger.info(
            "user_created",
            extra={"user_id": str(user.id), "role": role.value},
        )
        return user.to_dto()

    def set_role(self, user_id: UUID, role: Role | str) -> UserSummary:
        user = self._get_by_id(user_id)
        user.role = Role(role_value(role)).value
        user.updated_at = self.clock.now()
        self.session.flush()
        return user.to_dto()

    def deactivate_user(self, user_id: UUID) -> UserSummary:
        """Inactive users are skipped by the approver directory."""
        user = self._get_by_id(user_id)
        user.is_active = False
        user.updated_at = self.clock.now()
        self.session.flush()
        return user.to_dto()

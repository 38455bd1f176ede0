"""
Module: transport_kernel.models.user
Responsibility: ORM persistence for users: requesters, approvers, drivers.
Architecture position: Kernel > Models.  May import from db/base.py only
    (domain DTOs are imported lazily inside ``to_dto``).

Invariants enforced:
    - email is unique (uq_users_email).
    - role is one of the known roles (ck_users_valid_role).

Credentials are owned by the authentication layer and are not stored here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from transport_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from transport_kernel.domain.resources import UserSummary


class User(TrackedBase):
    """A person known to the system. Holds exactly one role."""

    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint(
            "role IN ('USER', 'HOD', 'TRANSPORT_OFFICER', 'ADMIN', 'DRIVER')",
            name="ck_users_valid_role",
        ),
        Index("ix_users_role_department", "role", "department"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    designation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="USER")
    department: Mapped[str | None] = mapped_column(String(16), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"

    def to_dto(self) -> UserSummary:
        from transport_kernel.domain.resources import UserSummary

        return UserSummary(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            department=self.department,
            designation=self.designation,
            contact_number=self.contact_number,
            is_active=self.is_active,
        )

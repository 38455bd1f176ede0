"""
Module: transport_kernel.selectors.requisition_selector
Responsibility: Read-only queries over requisitions: per-requester lists,
    department-scoped listings and composable search.
Architecture position: Kernel > Selectors.

Ordering:
    Lists default to newest first (created_at DESC, then id for stability).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, false, select

from transport_kernel.domain.requisition import (
    RequisitionDetail,
    RequisitionSearch,
)
from transport_kernel.models.requisition import Requisition
from transport_kernel.models.user import User
from transport_kernel.selectors.base import BaseSelector

_SUBSTRING_FILTERS: tuple[str, ...] = (
    "purpose",
    "places_to_visit",
    "place_to_pickup",
    "contact_number",
)


class RequisitionSelector(BaseSelector[Requisition]):
    """Selector for requisition queries."""

    def _details(self, stmt: Select) -> list[RequisitionDetail]:
        rows = self.session.execute(stmt).scalars().all()
        return [row.to_detail() for row in rows]

    @staticmethod
    def _scope_to_department(stmt: Select, department: str | None) -> Select:
        if department is None:
            # A department-scoped caller without a department sees nothing.
            return stmt.where(false())
        return stmt.join(User, Requisition.requester_id == User.id).where(
            User.department == department
        )

    def by_requester(self, requester_id: UUID) -> list[RequisitionDetail]:
        return self._details(
            select(Requisition)
            .where(Requisition.requester_id == requester_id)
            .order_by(Requisition.created_at.desc(), Requisition.id)
        )

    def visible(
        self,
        *,
        department: str | None = None,
        department_scoped: bool = False,
    ) -> list[RequisitionDetail]:
        """Every requisition, or only those whose requester is in ``department``."""
        stmt = select(Requisition)
        if department_scoped:
            stmt = self._scope_to_department(stmt, department)
        return self._details(
            stmt.order_by(Requisition.created_at.desc(), Requisition.id)
        )

    def search(
        self,
        filters: RequisitionSearch,
        *,
        department: str | None = None,
        department_scoped: bool = False,
    ) -> list[RequisitionDetail]:
        stmt = select(Requisition)
        if department_scoped:
            stmt = self._scope_to_department(stmt, department)

        if filters.requester_id is not None:
            stmt = stmt.where(Requisition.requester_id == filters.requester_id)
        if filters.status is not None:
            stmt = stmt.where(Requisition.status == filters.status.value)

        for name in _SUBSTRING_FILTERS:
            value = getattr(filters, name)
            if value:
                column = getattr(Requisition, name)
                stmt = stmt.where(column.icontains(value, autoescape=True))

        if filters.passenger_count is not None:
            stmt = stmt.where(Requisition.passenger_count == filters.passenger_count)
        if filters.min_passenger_count is not None:
            stmt = stmt.where(Requisition.passenger_count >= filters.min_passenger_count)
        if filters.max_passenger_count is not None:
            stmt = stmt.where(Requisition.passenger_count <= filters.max_passenger_count)

        day = filters.required_day_bounds()
        if day is not None:
            start, end = day
            stmt = stmt.where(
                Requisition.required_at >= start,
                Requisition.required_at < end,
            )
        if filters.required_from is not None:
            stmt = stmt.where(Requisition.required_at >= filters.required_from)
        if filters.required_to is not None:
            stmt = stmt.where(Requisition.required_at <= filters.required_to)

        column = getattr(Requisition, filters.sort_by)
        ordering = column.asc() if filters.sort_order == "asc" else column.desc()
        return self._details(stmt.order_by(ordering, Requisition.id))


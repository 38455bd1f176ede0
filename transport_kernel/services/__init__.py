"""Kernel services. Flush-only; the caller owns the transaction."""

from transport_kernel.services.approval_service import ApprovalService
from transport_kernel.services.approver_directory import DepartmentApproverDirectory
from transport_kernel.services.fleet_service import FleetService
from transport_kernel.services.ticket_service import TicketService
from transport_kernel.services.user_service import UserService

__all__ = [
    "ApprovalService",
    "DepartmentApproverDirectory",
    "FleetService",
    "TicketService",
    "UserService",
]

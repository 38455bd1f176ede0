"""
transport_services -- Package init and public API.

Responsibility:
    Stateful coordination over the pure rules in ``transport_engines`` and
    the kernel's models, selectors and services.  Wiring from a
    ``WorkflowConfigSet`` to a ready ``RequisitionWorkflow``
    or ``TripScheduler`` lives here.

Architecture position:
    Services -- top layer.

    Dependency direction:
        transport_services/ -> transport_engines/  (allowed)
        transport_services/ -> transport_kernel/   (allowed)
        transport_services/ -> transport_config/   (allowed)
        transport_kernel/   -> transport_services/ (FORBIDDEN)
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from transport_config import WorkflowConfigSet, get_active_config
from transport_config.bridges import (
    build_access_policy,
    build_approval_chain,
    build_approver_directory,
    build_assignment_policy,
)
from transport_kernel.domain.clock import Clock, SystemClock
from transport_kernel.logging_config import get_logger
from transport_kernel.services.approval_service import ApprovalService
from transport_kernel.services.ticket_service import TicketService
from transport_services.requisition_workflow import RequisitionWorkflow
from transport_services.resource_booking import ResourceBookingGuard
from transport_services.trip_scheduling import TripScheduler

logger = get_logger("services")

__all__ = [
    "RequisitionWorkflow",
    "ResourceBookingGuard",
    "TripScheduler",
    "build_requisition_workflow",
    "build_trip_scheduler",
]


def build_requisition_workflow(
    session: Session,
    config: WorkflowConfigSet | None = None,
    clock: Clock | None = None,
) -> RequisitionWorkflow:
    """Wire a RequisitionWorkflow (and its ApprovalService) from a config set.

    Without ``config`` the active ``default`` set is loaded.
    """
    if config is None:
        config = get_active_config()
    clock = clock or SystemClock()

    approvals = ApprovalService(
        session,
        chain=build_approval_chain(config),
        directory=build_approver_directory(session, config),
        clock=clock,
    )
    workflow = RequisitionWorkflow(
        session,
        approvals=approvals,
        access_policy=build_access_policy(config),
        assignment_policy=build_assignment_policy(config),
        clock=clock,
    )
    logger.debug(
        "requisition_workflow_wired",
        extra={"config_set_id": config.config_id, "config_set_version": config.version},
    )
    return workflow


def build_trip_scheduler(
    session: Session,
    config: WorkflowConfigSet | None = None,
    clock: Clock | None = None,
) -> TripScheduler:
    """Wire a TripScheduler (and its TicketService) from a config set."""
    if config is None:
        config = get_active_config()
    clock = clock or SystemClock()

    scheduler = TripScheduler(
        session,
        tickets=TicketService(session, clock),
        access_policy=build_access_policy(config),
        assignment_policy=build_assignment_policy(config),
        clock=clock,
    )
    logger.debug(
        "trip_scheduler_wired",
        extra={"config_set_id": config.config_id, "config_set_version": config.version},
    )
    return scheduler

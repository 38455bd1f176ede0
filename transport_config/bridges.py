"""
Config-to-kernel bridges.

Translates a validated ``WorkflowConfigSet`` into the kernel's own value
types.  The kernel never imports ``transport_config``; this module is the
one place the two meet.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from transport_config.schema import WorkflowConfigSet
from transport_kernel.domain.access import AccessPolicy, AssignmentPolicy
from transport_kernel.domain.approval import ApprovalChain
from transport_kernel.services.approver_directory import DepartmentApproverDirectory


def build_approval_chain(config: WorkflowConfigSet) -> ApprovalChain:
    return ApprovalChain(
        stages=config.approval_chain.stages,
        override_roles=config.approval_chain.override_roles,
    )


def build_access_policy(config: WorkflowConfigSet) -> AccessPolicy:
    access = config.access
    return AccessPolicy(
        list_all_roles=access.list_all_roles,
        department_scoped_roles=access.department_scoped_roles,
        update_any_roles=access.update_any_roles,
        delete_any_roles=access.delete_any_roles,
        assign_roles=access.assign_roles,
    )


def build_assignment_policy(config: WorkflowConfigSet) -> AssignmentPolicy:
    return AssignmentPolicy(
        conflict_window_minutes=config.assignment.conflict_window_minutes,
    )


def build_approver_directory(
    session: Session, config: WorkflowConfigSet,
) -> DepartmentApproverDirectory:
    return DepartmentApproverDirectory(
        session,
        department_scoped_stages=config.approval_chain.department_scoped_stages,
    )

"""
WorkflowConfigSet schema.

The human-authored, reviewable configuration for the requisition workflow.
YAML files under ``sets/`` are parsed into these types by the loader,
checked by the validator, and translated into kernel inputs by the bridges.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Approval chain
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApprovalChainDef:
    """Ordered approval stages.

    ``department_scoped_stages`` are resolved to an approver in the
    requester's own department.
    """

    stages: tuple[str, ...]
    override_roles: tuple[str, ...] = ()
    department_scoped_stages: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccessPolicyDef:
    list_all_roles: tuple[str, ...] = ()
    department_scoped_roles: tuple[str, ...] = ()
    update_any_roles: tuple[str, ...] = ()
    delete_any_roles: tuple[str, ...] = ()
    assign_roles: tuple[str, ...] = ()

    def all_roles(self) -> tuple[str, ...]:
        return (
            self.list_all_roles
            + self.department_scoped_roles
            + self.update_any_roles
            + self.delete_any_roles
            + self.assign_roles
        )


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssignmentPolicyDef:
    conflict_window_minutes: int = 0


# ---------------------------------------------------------------------------
# Top-level set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkflowConfigSet:
    """One named, versioned configuration set."""

    config_id: str
    version: int
    approval_chain: ApprovalChainDef
    access: AccessPolicyDef
    assignment: AssignmentPolicyDef
    description: str = ""
    checksum: str = ""

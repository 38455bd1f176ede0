"""
transport_engines.access -- Pure role checks for requisition operations.

Responsibility:
    Decide whether a caller may list, update, delete or assign resources to
    requisitions, given the configured ``AccessPolicy``.  Callers turn a
    denial into the matching kernel exception.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import transport_kernel/domain types.

Rules (default policy):
    - Listing: ADMIN and TRANSPORT_OFFICER see everything; HOD sees the
      requisitions of its own department; anyone else is denied.
    - Update: the requester while PENDING; ADMIN / TRANSPORT_OFFICER at any
      status.
    - Delete: the requester while PENDING; ADMIN at any status.
    - Assign: ADMIN / TRANSPORT_OFFICER.

A requester acting on their own requisition after it settled gets
``NOT_PENDING`` rather than ``FORBIDDEN``; the distinction maps to a
workflow error (400) instead of an authorization error (403).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from transport_kernel.domain.access import AccessPolicy
from transport_kernel.domain.approval import RequestStatus
from transport_kernel.domain.roles import role_value


class AccessVerdict(str, Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_PENDING = "not_pending"


@dataclass(frozen=True)
class AccessDecision:
    verdict: AccessVerdict
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.verdict == AccessVerdict.ALLOWED


_ALLOW = AccessDecision(AccessVerdict.ALLOWED)


@dataclass(frozen=True)
class ListingScope:
    """Result of a listing check.

    ``department_scoped`` with ``department=None`` means the caller is
    allowed but belongs to no department, so nothing is visible.
    """

    allowed: bool
    department_scoped: bool = False
    department: str | None = None
    reason: str = ""


def resolve_listing_scope(
    policy: AccessPolicy,
    caller_role: str,
    caller_department: str | None = None,
) -> ListingScope:
    role = role_value(caller_role)
    if role in policy.list_all_roles:
        return ListingScope(allowed=True)
    if role in policy.department_scoped_roles:
        return ListingScope(
            allowed=True,
            department_scoped=True,
            department=role_value(caller_department) if caller_department else None,
        )
    return ListingScope(
        allowed=False,
        reason=f"role {role} cannot list all requisitions",
    )


def _owner_or_role(
    *,
    actor_id: UUID,
    actor_role: str,
    requester_id: UUID,
    status: RequestStatus | str,
    privileged_roles: tuple[str, ...],
    action: str,
) -> AccessDecision:
    role = role_value(actor_role)
    if role in privileged_roles:
        return _ALLOW
    if actor_id == requester_id:
        if RequestStatus(status) == RequestStatus.PENDING:
            return _ALLOW
        return AccessDecision(
            AccessVerdict.NOT_PENDING,
            f"requester can only {action} while PENDING",
        )
    return AccessDecision(
        AccessVerdict.FORBIDDEN,
        f"only the requester or {'/'.join(privileged_roles)} may {action}",
    )


def check_update_access(
    policy: AccessPolicy,
    *,
    actor_id: UUID,
    actor_role: str,
    requester_id: UUID,
    status: RequestStatus | str,
) -> AccessDecision:
    return _owner_or_role(
        actor_id=actor_id,
        actor_role=actor_role,
        requester_id=requester_id,
        status=status,
        privileged_roles=policy.update_any_roles,
        action="update",
    )


def check_delete_access(
    policy: AccessPolicy,
    *,
    actor_id: UUID,
    actor_role: str,
    requester_id: UUID,
    status: RequestStatus | str,
) -> AccessDecision:
    return _owner_or_role(
        actor_id=actor_id,
        actor_role=actor_role,
        requester_id=requester_id,
        status=status,
        privileged_roles=policy.delete_any_roles,
        action="delete",
    )


def check_assign_access(policy: AccessPolicy, actor_role: str) -> AccessDecision:
    role = role_value(actor_role)
    if role in policy.assign_roles:
        return _ALLOW
    return AccessDecision(
        AccessVerdict.FORBIDDEN,
        f"only {'/'.join(policy.assign_roles)} may assign resources",
    )

"""
Module: transport_engines
Responsibility:
    Pure rule engines used by the requisition workflow and trip scheduling:
    role-based access checks and the vehicle/driver double-booking rule.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import transport_kernel/domain types.
    MUST NOT import transport_services or transport_config.

Invariants enforced:
    - Purity: engines never read the clock or the database; times and
      bookings are passed in.
    - Determinism: identical inputs always produce identical outputs.
"""

from transport_engines.access import (
    AccessDecision,
    AccessVerdict,
    ListingScope,
    check_assign_access,
    check_delete_access,
    check_update_access,
    resolve_listing_scope,
)
from transport_engines.assignment import clashes, conflict_bounds, find_conflict

__all__ = [
    "AccessDecision",
    "AccessVerdict",
    "ListingScope",
    "check_assign_access",
    "check_delete_access",
    "check_update_access",
    "resolve_listing_scope",
    "clashes",
    "conflict_bounds",
    "find_conflict",
]

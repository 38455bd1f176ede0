"""
transport_engines.assignment -- Vehicle / driver double-booking rule.

Responsibility:
    Given the time a vehicle or driver is wanted and the bookings that
    already hold it (APPROVED requisitions and SCHEDULED trips), find the
    booking (if any) that clashes under the ``AssignmentPolicy``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The caller computes the
    candidate range with ``conflict_bounds`` and loads the bookings inside
    it (``BookingSelector.bookings``).

Invariants enforced:
    - Two bookings clash when their times are strictly less than
      ``conflict_window_minutes`` apart.  Exactly one window apart is fine.
    - A window of 0 never clashes.
    - The closest clash wins; ties go to the earlier booking, then the
      smaller id, so the reported conflict is deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from transport_kernel.domain.access import AssignmentPolicy
from transport_kernel.domain.clock import as_utc
from transport_kernel.domain.resources import Booking


def conflict_bounds(
    required_at: datetime, policy: AssignmentPolicy,
) -> tuple[datetime, datetime]:
    """Inclusive search bounds for candidate bookings."""
    when = as_utc(required_at)
    return when - policy.window, when + policy.window


def clashes(a: datetime, b: datetime, policy: AssignmentPolicy) -> bool:
    if not policy.enabled:
        return False
    return abs(as_utc(a) - as_utc(b)) < policy.window


def find_conflict(
    required_at: datetime,
    bookings: Iterable[Booking],
    policy: AssignmentPolicy,
) -> Booking | None:
    """Return the clashing booking closest to ``required_at``, or None."""
    if not policy.enabled:
        return None

    when = as_utc(required_at)
    clashing = [b for b in bookings if clashes(when, b.required_at, policy)]
    if not clashing:
        return None

    return min(
        clashing,
        key=lambda b: (abs(as_utc(b.required_at) - when), as_utc(b.required_at), str(b.id)),
    )

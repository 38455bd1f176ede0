"""Tests for transport_engines.assignment -- the double-booking rule."""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from transport_engines.assignment import clashes, conflict_bounds, find_conflict
from transport_kernel.domain.access import AssignmentPolicy
from transport_kernel.domain.resources import Booking

BASE = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
POLICY = AssignmentPolicy(conflict_window_minutes=240)


def booking(required_at: datetime, booking_id: UUID | None = None, kind: str = "requisition") -> Booking:
    return Booking(kind=kind, id=booking_id or uuid4(), required_at=required_at)


class TestClashes:
    def test_inside_window(self):
        assert clashes(BASE, BASE + timedelta(hours=3, minutes=59), POLICY)

    def test_exactly_one_window_apart_is_fine(self):
        assert not clashes(BASE, BASE + timedelta(hours=4), POLICY)
        assert not clashes(BASE, BASE - timedelta(hours=4), POLICY)

    def test_same_time(self):
        assert clashes(BASE, BASE, POLICY)

    def test_disabled_window(self):
        assert not clashes(BASE, BASE, AssignmentPolicy(conflict_window_minutes=0))

    def test_naive_values_treated_as_utc(self):
        assert clashes(BASE.replace(tzinfo=None), BASE + timedelta(hours=1), POLICY)


class TestConflictBounds:
    def test_symmetric_around_required_at(self):
        start, end = conflict_bounds(BASE, POLICY)
        assert BASE - start == end - BASE == timedelta(minutes=240)


class TestFindConflict:
    def test_no_bookings(self):
        assert find_conflict(BASE, [], POLICY) is None

    def test_only_distant_bookings(self):
        bookings = [booking(BASE + timedelta(hours=5)), booking(BASE - timedelta(days=1))]
        assert find_conflict(BASE, bookings, POLICY) is None

    def test_closest_clash_wins(self):
        far = booking(BASE + timedelta(hours=3))
        near = booking(BASE - timedelta(hours=1))
        assert find_conflict(BASE, [far, near], POLICY) == near

    def test_equal_distance_prefers_earlier(self):
        before = booking(BASE - timedelta(hours=2))
        after = booking(BASE + timedelta(hours=2))
        assert find_conflict(BASE, [after, before], POLICY) == before

    def test_equal_time_breaks_tie_by_id(self):
        low = booking(BASE, UUID(int=1))
        high = booking(BASE, UUID(int=2))
        assert find_conflict(BASE, [high, low], POLICY) == low

    def test_disabled_policy(self):
        assert find_conflict(BASE, [booking(BASE)], AssignmentPolicy(conflict_window_minutes=0)) is None

    def test_trips_and_requisitions_compete(self):
        requisition = booking(BASE + timedelta(hours=2))
        trip = booking(BASE - timedelta(minutes=30), kind="trip")

        found = find_conflict(BASE, [requisition, trip], POLICY)

        assert found == trip
        assert found.kind == "trip"

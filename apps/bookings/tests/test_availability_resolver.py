from datetime import date

from apps.bookings.domain.availability import AvailabilityResolver, StaySnapshot, UnitRef
from apps.bookings.exceptions import StoreUnavailable

UNIT = UnitRef(id=1, code="CAB1", name="Lake cabin")


class InMemoryStore:
    def __init__(self, stays=(), blocked=()):
        self.stays = list(stays)
        self.blocked = list(blocked)
        self.calls = 0

    def reservations_for(self, unit, dates):
        self.calls += 1
        return list(self.stays)

    def blocked_dates_for(self, unit, dates):
        return [day for unit_id, day in self.blocked if unit_id == unit.id]


class FailingStore:
    def reservations_for(self, unit, dates):
        raise StoreUnavailable("connection reset")

    def blocked_dates_for(self, unit, dates):
        raise StoreUnavailable("connection reset")


def stay(reservation_id=10, check_in=date(2025, 1, 10), check_out=date(2025, 1, 12), status="confirmed", unit_id=1, unit_code="CAB1"):
    return StaySnapshot(reservation_id, unit_id, unit_code, check_in, check_out, status)


def test_back_to_back_request_is_available():
    resolver = AvailabilityResolver(InMemoryStore([stay()]))

    assert resolver.is_available(UNIT, date(2025, 1, 12), date(2025, 1, 14))


def test_overlapping_request_is_unavailable():
    resolver = AvailabilityResolver(InMemoryStore([stay()]))

    assert not resolver.is_available(UNIT, date(2025, 1, 11), date(2025, 1, 13))


def test_request_ending_on_existing_check_in_is_available():
    resolver = AvailabilityResolver(InMemoryStore([stay()]))

    assert resolver.is_available(UNIT, "2025-01-08", "2025-01-10")


def test_cancelled_and_no_show_reservations_do_not_block():
    resolver = AvailabilityResolver(
        InMemoryStore([stay(status="cancelled"), stay(reservation_id=11, status="no_show")])
    )

    assert resolver.is_available(UNIT, date(2025, 1, 10), date(2025, 1, 12))


def test_legacy_row_matched_by_code_only():
    legacy = stay(unit_id=None, unit_code="cab1")
    resolver = AvailabilityResolver(InMemoryStore([legacy]))

    assert not resolver.is_available(UNIT, date(2025, 1, 11), date(2025, 1, 12))


def test_other_units_reservations_are_ignored():
    other = stay(unit_id=2, unit_code="CAB2")
    resolver = AvailabilityResolver(InMemoryStore([other]))

    assert resolver.is_available(UNIT, date(2025, 1, 10), date(2025, 1, 12))


def test_excluded_reservations_do_not_conflict():
    resolver = AvailabilityResolver(InMemoryStore([stay(reservation_id=10), stay(reservation_id=11)]))

    assert not resolver.is_available(UNIT, date(2025, 1, 10), date(2025, 1, 12), exclude_ids=[10])
    assert resolver.is_available(UNIT, date(2025, 1, 10), date(2025, 1, 12), exclude_ids=[10, 11])


def test_blocked_night_inside_stay_makes_unit_unavailable():
    resolver = AvailabilityResolver(InMemoryStore(blocked=[(1, date(2025, 1, 11))]))

    assert not resolver.is_available(UNIT, date(2025, 1, 10), date(2025, 1, 12))


def test_blocked_checkout_day_is_not_a_conflict():
    resolver = AvailabilityResolver(InMemoryStore(blocked=[(1, date(2025, 1, 12))]))

    assert resolver.is_available(UNIT, date(2025, 1, 10), date(2025, 1, 12))


def test_degenerate_or_unparsable_range_is_unavailable():
    resolver = AvailabilityResolver(InMemoryStore())

    assert not resolver.is_available(UNIT, date(2025, 1, 12), date(2025, 1, 12))
    assert not resolver.is_available(UNIT, date(2025, 1, 12), date(2025, 1, 10))
    assert not resolver.is_available(UNIT, "soon", "2025-01-10")


def test_store_failure_fails_closed():
    resolver = AvailabilityResolver(FailingStore())

    assert not resolver.is_available(UNIT, date(2025, 1, 10), date(2025, 1, 12))


def test_repeated_checks_give_the_same_answer():
    store = InMemoryStore([stay()])
    resolver = AvailabilityResolver(store)

    first = resolver.is_available(UNIT, date(2025, 1, 11), date(2025, 1, 13))
    second = resolver.is_available(UNIT, date(2025, 1, 11), date(2025, 1, 13))

    assert first == second is False
    assert store.calls == 2

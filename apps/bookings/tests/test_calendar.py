from datetime import date, datetime, timedelta

import pytest

from apps.bookings.domain.calendar import (
    NightKind,
    classify_night,
    expand_nights,
    nights,
    parse_iso_date,
    to_date_range,
)
from shared.domain.value_objects import DateRange

MONDAY = date(2025, 1, 6)


def test_nights_counts_whole_days():
    assert nights(date(2025, 1, 10), date(2025, 1, 12)) == 2


@pytest.mark.parametrize(
    "check_in, check_out",
    [
        (date(2025, 1, 12), date(2025, 1, 12)),
        (date(2025, 1, 12), date(2025, 1, 10)),
        (None, date(2025, 1, 10)),
    ],
)
def test_nights_is_zero_for_degenerate_ranges(check_in, check_out):
    assert nights(check_in, check_out) == 0


def test_only_friday_and_saturday_nights_are_weekend():
    kinds = [classify_night(MONDAY + timedelta(days=offset)) for offset in range(7)]

    assert kinds == [
        NightKind.WEEKDAY,  # Mon
        NightKind.WEEKDAY,
        NightKind.WEEKDAY,
        NightKind.WEEKDAY,  # Thu
        NightKind.WEEKEND,  # Fri
        NightKind.WEEKEND,  # Sat
        NightKind.WEEKDAY,  # Sun
    ]


def test_expand_nights_excludes_checkout_and_can_be_iterated_twice():
    sequence = expand_nights(DateRange(date(2025, 1, 10), date(2025, 1, 13)))

    first = list(sequence)
    second = list(sequence)

    assert first == [date(2025, 1, 10), date(2025, 1, 11), date(2025, 1, 12)]
    assert second == first
    assert len(sequence) == 3


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2025-01-10", date(2025, 1, 10)),
        (" 2025-01-10 ", date(2025, 1, 10)),
        (date(2025, 1, 10), date(2025, 1, 10)),
        (datetime(2025, 1, 10, 15, 30), date(2025, 1, 10)),
        ("10/01/2025", None),
        ("2025-02-30", None),
        ("", None),
        (None, None),
        (20250110, None),
    ],
)
def test_parse_iso_date(value, expected):
    assert parse_iso_date(value) == expected


def test_to_date_range_rejects_unparsable_and_inverted_input():
    assert to_date_range("2025-01-10", "2025-01-12") == DateRange(date(2025, 1, 10), date(2025, 1, 12))
    assert to_date_range("2025-01-12", "2025-01-10") is None
    assert to_date_range("2025-01-12", "2025-01-12") is None
    assert to_date_range("not a date", "2025-01-12") is None


def test_date_range_rejects_empty_stay():
    with pytest.raises(ValueError):
        DateRange(date(2025, 1, 12), date(2025, 1, 12))


def test_overlap_matches_half_open_interval_rule():
    base = date(2025, 1, 1)
    for a in range(0, 5):
        for b in range(a + 1, 6):
            for c in range(0, 5):
                for d in range(c + 1, 6):
                    first = DateRange(base + timedelta(days=a), base + timedelta(days=b))
                    second = DateRange(base + timedelta(days=c), base + timedelta(days=d))
                    assert first.overlaps_with(second) == (a < d and c < b)


def test_back_to_back_stays_do_not_overlap():
    stay = DateRange(date(2025, 1, 10), date(2025, 1, 12))
    following = DateRange(date(2025, 1, 12), date(2025, 1, 14))

    assert not stay.overlaps_with(following)
    assert not following.overlaps_with(stay)

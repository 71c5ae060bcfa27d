"""
Calendar arithmetic

Stays are half-open ranges: the check-in night is sold, the check-out day
is not. Pricing uses a fixed Friday/Saturday weekend; the configurable
reporting weekend lives in ``apps.bookings.services`` and is never used here.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterator

from shared.domain.value_objects import DateRange

# date.weekday(): Monday is 0, Friday 4, Saturday 5
PRICING_WEEKEND_DAYS = frozenset({4, 5})


class NightKind(str, Enum):
    WEEKDAY = "weekday"
    WEEKEND = "weekend"


def nights(check_in: date | None, check_out: date | None) -> int:
    """Whole nights between two dates, 0 for a missing or inverted range."""
    if check_in is None or check_out is None:
        return 0
    return max((check_out - check_in).days, 0)


def classify_night(day: date) -> NightKind:
    if day.weekday() in PRICING_WEEKEND_DAYS:
        return NightKind.WEEKEND
    return NightKind.WEEKDAY


class NightSequence:
    """
    The nights of a stay, produced lazily.

    Iterating twice yields the same dates; nothing is materialised.
    """

    def __init__(self, dates: DateRange):
        self.dates = dates

    def __iter__(self) -> Iterator[date]:
        day = self.dates.check_in
        while day < self.dates.check_out:
            yield day
            day += timedelta(days=1)

    def __len__(self) -> int:
        return self.dates.nights

    def __repr__(self) -> str:
        return f"NightSequence({self.dates})"


def expand_nights(dates: DateRange) -> NightSequence:
    return NightSequence(dates)


def parse_iso_date(value) -> date | None:
    """Accept a date, a datetime or an ISO ``YYYY-MM-DD`` string; anything else is None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def to_date_range(check_in, check_out) -> DateRange | None:
    """Build a stay from raw input, or None when it is unparsable or has no nights."""
    start = parse_iso_date(check_in)
    end = parse_iso_date(check_out)
    if start is None or end is None or end <= start:
        return None
    return DateRange(start, end)

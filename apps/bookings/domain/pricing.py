"""
Rate calculator

Room subtotals are exact Decimal arithmetic; ``to_cents`` is applied only
when an amount is written to a reservation row.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.value_objects import DateRange

from apps.bookings.domain.calendar import NightKind, classify_night, expand_nights

ZERO = Decimal("0")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class NightlyRates:
    weekday: Decimal
    weekend: Decimal

    @classmethod
    def from_room(cls, room) -> "NightlyRates":
        return cls(weekday=Decimal(room.weekday_rate or 0), weekend=Decimal(room.weekend_rate or 0))


@dataclass(frozen=True)
class RoomQuote:
    subtotal: Decimal
    weekday_nights: int
    weekend_nights: int

    @property
    def nights(self) -> int:
        return self.weekday_nights + self.weekend_nights


def count_nights(dates: DateRange) -> tuple[int, int]:
    """(weekday nights, weekend nights) of a stay."""
    weekday = weekend = 0
    for night in expand_nights(dates):
        if classify_night(night) is NightKind.WEEKEND:
            weekend += 1
        else:
            weekday += 1
    return weekday, weekend


def quote_stay(rates: NightlyRates, dates: DateRange) -> RoomQuote:
    weekday, weekend = count_nights(dates)
    subtotal = rates.weekday * weekday + rates.weekend * weekend
    return RoomQuote(subtotal=subtotal, weekday_nights=weekday, weekend_nights=weekend)


def quote_override(per_night: Decimal, dates: DateRange) -> RoomQuote:
    """Operator-entered flat nightly price, ignoring the weekday/weekend split."""
    weekday, weekend = count_nights(dates)
    subtotal = Decimal(per_night) * (weekday + weekend)
    return RoomQuote(subtotal=subtotal, weekday_nights=weekday, weekend_nights=weekend)


def fixed_quote(subtotal: Decimal, dates: DateRange) -> RoomQuote:
    weekday, weekend = count_nights(dates)
    return RoomQuote(subtotal=Decimal(subtotal), weekday_nights=weekday, weekend_nights=weekend)


def package_room_subtotal(package_price: Decimal, extras_total: Decimal) -> Decimal:
    """The package price is the whole price; included extras are carved out of it."""
    return max(Decimal(package_price) - extras_total, ZERO)


def booking_total(room_subtotal: Decimal, extras_total: Decimal, discount: Decimal) -> Decimal:
    return max(room_subtotal + extras_total - discount, ZERO)


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)

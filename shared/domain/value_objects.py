"""
Common Value Objects

- Money: non-negative amount in one currency
- DateRange: a stay, check-in (inclusive) to check-out (exclusive)
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('GHS', 'USD', 'EUR', 'GBP')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are kept unrounded; rounding to cents happens only when a
    value is written to a reservation row.
    """
    amount: Decimal
    currency: str = 'GHS'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    def __str__(self):
        return f"{self.currency} {self.amount:,.2f}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Half-open interval [check_in, check_out): the check-out day is not a
    sold night, so a stay ending on a day and another starting on the same
    day never collide.
    """
    check_in: date
    check_out: date

    def __post_init__(self):
        if self.check_in >= self.check_out:
            raise ValueError(
                f"Check-in ({self.check_in}) must be before check-out ({self.check_out})"
            )

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Examples:
            - [10, 12) overlaps with [11, 13) -> True
            - [10, 12) overlaps with [12, 14) -> False (back-to-back)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return self.check_in < other.check_out and self.check_out > other.check_in

    def contains(self, day: date) -> bool:
        return self.check_in <= day < self.check_out

    def iter_nights(self) -> Iterator[date]:
        day = self.check_in
        while day < self.check_out:
            yield day
            day += timedelta(days=1)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def __len__(self) -> int:
        return self.nights

    def __str__(self):
        return f"{self.check_in.isoformat()} - {self.check_out.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.check_in}, {self.check_out})"

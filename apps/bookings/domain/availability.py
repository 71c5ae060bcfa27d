"""
Availability resolver

A unit is free for a stay when no live reservation overlaps it and no
blocked date falls inside it. Reads go through an ``AvailabilityStore`` so
the rules can run against the ORM or an in-memory fake; a failing store
makes the unit unavailable instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol

from shared.domain.value_objects import DateRange

from apps.bookings.exceptions import StoreUnavailable
from apps.bookings.domain.calendar import to_date_range

logger = logging.getLogger(__name__)

# Reservations in these states never hold a unit
RELEASED_STATUSES = frozenset({"cancelled", "no_show"})


@dataclass(frozen=True)
class UnitRef:
    """
    Identity of a bookable unit.

    Older reservation rows only carry the room code, so a row belongs to the
    unit when either its id or its code matches.
    """

    id: int | None
    code: str = ""
    name: str = ""

    def matches(self, unit_id, unit_code) -> bool:
        if self.id is not None and unit_id is not None and str(unit_id) == str(self.id):
            return True
        if self.code and unit_code and str(unit_code).upper() == self.code.upper():
            return True
        return False

    @property
    def label(self) -> str:
        if self.code and self.name:
            return f"{self.code.upper()} ({self.name})"
        return (self.code or "").upper() or self.name or f"Room {self.id}"


@dataclass(frozen=True)
class StaySnapshot:
    """The parts of a stored reservation the resolver needs."""

    reservation_id: int
    unit_id: int | None
    unit_code: str
    check_in: date
    check_out: date
    status: str

    def overlaps(self, dates: DateRange) -> bool:
        return self.check_in < dates.check_out and self.check_out > dates.check_in


class AvailabilityStore(Protocol):
    def reservations_for(self, unit: UnitRef, dates: DateRange) -> Iterable[StaySnapshot]:
        ...

    def blocked_dates_for(self, unit: UnitRef, dates: DateRange) -> Iterable[date]:
        ...


class AvailabilityResolver:
    def __init__(self, store: AvailabilityStore):
        self.store = store

    def is_available(self, unit: UnitRef, check_in, check_out, exclude_ids: Iterable[int] = ()) -> bool:
        dates = to_date_range(check_in, check_out)
        if dates is None:
            return False

        excluded = {str(pk) for pk in exclude_ids}
        try:
            for stay in self.store.reservations_for(unit, dates):
                if stay.status in RELEASED_STATUSES or str(stay.reservation_id) in excluded:
                    continue
                if unit.matches(stay.unit_id, stay.unit_code) and stay.overlaps(dates):
                    logger.debug(f"{unit.label} taken by reservation {stay.reservation_id} for {dates}")
                    return False

            for blocked in self.store.blocked_dates_for(unit, dates):
                if dates.contains(blocked):
                    logger.debug(f"{unit.label} blocked on {blocked}")
                    return False
        except StoreUnavailable as e:
            logger.error(f"Availability lookup failed for {unit.label}, treating as unavailable: {e}", exc_info=True)
            return False

        return True

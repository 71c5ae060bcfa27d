"""Read-side booking services: availability queries and the reporting weekend."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta

from django.conf import settings  # type: ignore
from django.db import DatabaseError  # type: ignore

from apps.catalog.models import Package, RoomType
from apps.catalog.repositories import CatalogRepository

from .domain.availability import RELEASED_STATUSES, AvailabilityResolver, UnitRef
from .domain.calendar import to_date_range
from .models import BlockedDate, Reservation, WeekendDefinition
from .repositories import DjangoAvailabilityStore

logger = logging.getLogger(__name__)


def unit_ref_for(room: RoomType) -> UnitRef:
    return UnitRef(id=room.pk, code=room.code, name=room.name)


def find_room(ref) -> RoomType | None:
    """Room type by id or, for non-numeric input, by code."""
    return CatalogRepository().rooms_query([ref]).first()


def check_availability(unit: UnitRef, check_in, check_out, exclude_ids=()) -> bool:
    """Whether ``unit`` can take the stay; unparsable input or a failed read gives False."""
    return AvailabilityResolver(DjangoAvailabilityStore()).is_available(unit, check_in, check_out, exclude_ids)


def disabled_check_in_dates(
    today: date | None = None,
    horizon_days: int | None = None,
    package: Package | None = None,
) -> list[date]:
    """
    Days in the horizon on which no active unit has a free night.

    Used by the booking calendar to grey out check-in dates. With a
    ``package`` the stay is the package length on one of its units, and
    days outside the package's validity window are disabled as well.

    A failed read returns an empty list so the calendar stays usable; the
    booking itself is still checked when it is saved.
    """
    today = today or date.today()
    horizon_days = horizon_days or settings.BOOKING_CHECKIN_HORIZON_DAYS
    nights = (package.nights or 1) if package else 1
    horizon = to_date_range(today, today + timedelta(days=horizon_days))
    if horizon is None:
        return []
    # occupancy has to cover the last stay that starts inside the horizon
    window_end = horizon.check_out + timedelta(days=nights - 1)

    try:
        rooms_query = RoomType.objects.filter(is_active=True)
        if package is not None and package.room_types.exists():
            rooms_query = rooms_query.filter(pk__in=package.room_types.values("pk"))
        rooms = [unit_ref_for(room) for room in rooms_query]
        stays = list(
            Reservation.objects.exclude(status__in=RELEASED_STATUSES)
            .filter(check_in__lt=window_end, check_out__gt=horizon.check_in)
            .values_list("room_type_id", "room_type_code", "check_in", "check_out")
        )
        blocked = list(
            BlockedDate.objects.filter(
                blocked_date__gte=horizon.check_in,
                blocked_date__lt=window_end,
            ).values_list("room_type_id", "blocked_date")
        )
    except DatabaseError as e:
        logger.error(f"Could not load occupancy for disabled check-in dates: {e}", exc_info=True)
        return []

    occupied: dict[int, set[date]] = defaultdict(set)
    for room in rooms:
        for unit_id, unit_code, check_in, check_out in stays:
            if not room.matches(unit_id, unit_code):
                continue
            night = max(check_in, horizon.check_in)
            while night < min(check_out, window_end):
                occupied[room.id].add(night)
                night += timedelta(days=1)
    for room_type_id, blocked_date in blocked:
        occupied[room_type_id].add(blocked_date)

    def bookable(day: date) -> bool:
        check_out = day + timedelta(days=nights)
        if package is not None:
            if package.valid_from and day < package.valid_from:
                return False
            if package.valid_until and check_out > package.valid_until:
                return False
        stay = [day + timedelta(days=offset) for offset in range(nights)]
        return any(not any(night in occupied[room.id] for night in stay) for room in rooms)

    return [day for day in horizon.iter_nights() if not bookable(day)]


def reporting_weekend_days() -> frozenset[int]:
    """
    Weekdays (0 = Monday) that reports treat as weekend.

    Configured in ``WeekendDefinition``; pricing never reads it.
    """
    return frozenset(
        WeekendDefinition.objects.filter(is_weekend=True).values_list("day_of_week", flat=True)
    )

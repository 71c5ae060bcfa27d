"""
Booking assembler

Runs one booking attempt end to end without writing anything:
validate the request, check every unit, price every unit, price the
extras, apply the coupon, then split the result into leader and member
drafts. Any rejection comes back as ``BookingResult(ok=False)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Sequence

from apps.catalog.domain import ExtraLine, extras_total, price_extras
from apps.coupons.domain import AppliedCoupon, CouponRejected, CouponTerms, normalize_code, resolve_coupon

from apps.bookings.exceptions import BookingRejected, InvalidBookingRequest, UnitUnavailable
from apps.bookings.domain.availability import AvailabilityResolver, UnitRef
from apps.bookings.domain.calendar import parse_iso_date, to_date_range
from apps.bookings.domain.entities import BookingPlan, GuestDetails, ReservationDraft
from apps.bookings.domain.group import GroupCoordinator, check_capacity, distribute_adults
from apps.bookings.domain.pricing import (
    ZERO,
    NightlyRates,
    RoomQuote,
    fixed_quote,
    package_room_subtotal,
    quote_override,
    quote_stay,
)

logger = logging.getLogger(__name__)

CouponLookup = Callable[[str], Sequence[CouponTerms]]
ExtrasLookup = Callable[[Iterable[str]], Mapping[str, Any]]


@dataclass(frozen=True)
class RoomOffer:
    """A unit as the assembler sees it: identity, rates and capacity."""

    unit: UnitRef
    rates: NightlyRates
    max_adults: int = 0
    # stored price kept as is when a package reservation is edited
    fixed_subtotal: Decimal | None = None


@dataclass(frozen=True)
class PackageTerms:
    id: int
    code: str
    name: str
    price: Decimal
    nights: int
    extras: tuple[ExtraLine, ...] = ()
    room_type_ids: tuple[int, ...] = ()
    valid_from: date | None = None
    valid_until: date | None = None


@dataclass
class BookingRequest:
    rooms: Sequence[RoomOffer]
    check_in: Any
    check_out: Any
    guest: GuestDetails = field(default_factory=GuestDetails)
    extra_quantities: Mapping[str, int] = field(default_factory=dict)
    coupon_code: str = ""
    # coupon already held by the booking being edited: its use is not counted again
    current_coupon_code: str = ""
    package: PackageTerms | None = None
    price_override_per_night: Decimal | None = None
    exclude_ids: Sequence[int] = ()
    currency: str = "GHS"


@dataclass
class BookingResult:
    ok: bool
    plan: BookingPlan | None = None
    reason: str = ""
    code: str = ""
    # True when the rejection came from the final write, not from validation
    write_failed: bool = False

    @property
    def drafts(self) -> list[ReservationDraft]:
        return self.plan.drafts if self.plan else []

    @classmethod
    def accepted(cls, plan: BookingPlan) -> "BookingResult":
        return cls(ok=True, plan=plan)

    @classmethod
    def rejected(cls, error: Exception) -> "BookingResult":
        if isinstance(error, CouponRejected):
            return cls(ok=False, reason=error.message, code=f"coupon_{error.rejection.value}")
        if isinstance(error, BookingRejected):
            return cls(ok=False, reason=error.reason, code=error.code)
        return cls(ok=False, reason=str(error), code="rejected")

    @classmethod
    def failed(cls, reason: str) -> "BookingResult":
        return cls(ok=False, reason=reason, code="write_failed", write_failed=True)


class BookingAssembler:
    def __init__(
        self,
        availability: AvailabilityResolver,
        find_coupons: CouponLookup,
        find_extras: ExtrasLookup,
        coordinator: GroupCoordinator | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.availability = availability
        self.find_coupons = find_coupons
        self.find_extras = find_extras
        self.coordinator = coordinator or GroupCoordinator()
        self.today = today

    def assemble(self, request: BookingRequest) -> BookingResult:
        try:
            plan = self._assemble(request)
        except (BookingRejected, CouponRejected) as e:
            result = BookingResult.rejected(e)
            logger.warning(f"Booking rejected ({result.code}): {result.reason}")
            return result
        return BookingResult.accepted(plan)

    def _assemble(self, request: BookingRequest) -> BookingPlan:
        dates = self._validate(request)

        for room in request.rooms:
            if not self.availability.is_available(room.unit, dates.check_in, dates.check_out, request.exclude_ids):
                raise UnitUnavailable(room.unit.label)

        extras = self._price_extras(request)
        extras_sum = extras_total(extras)
        quotes = [(room.unit, self._quote(room, request, dates, extras_sum)) for room in request.rooms]
        room_subtotal = sum((quote.subtotal for _, quote in quotes), ZERO)

        coupon = self._apply_coupon(request, room_subtotal, extras)
        discount = coupon.discount if coupon else ZERO

        adults = distribute_adults(request.guest.adults, [room.max_adults for room in request.rooms])
        drafts = self.coordinator.split(quotes, adults, extras, coupon, discount)

        return BookingPlan(
            dates=dates,
            guest=request.guest,
            drafts=drafts,
            currency=request.currency,
            coupon=coupon,
            package_id=request.package.id if request.package else None,
            price_override_per_night=request.price_override_per_night,
        )

    def _validate(self, request: BookingRequest):
        if parse_iso_date(request.check_in) is None:
            raise InvalidBookingRequest("Please choose a check-in date")
        if parse_iso_date(request.check_out) is None:
            raise InvalidBookingRequest("Please choose a check-out date")
        dates = to_date_range(request.check_in, request.check_out)
        if dates is None:
            raise InvalidBookingRequest("Check-out must be after check-in")
        if not request.rooms:
            raise InvalidBookingRequest("Please select at least one cabin")

        seen = set()
        for room in request.rooms:
            key = room.unit.id if room.unit.id is not None else room.unit.code
            if key in seen:
                raise InvalidBookingRequest(f"{room.unit.label} was selected more than once")
            seen.add(key)

        if request.price_override_per_night is not None and request.price_override_per_night < 0:
            raise InvalidBookingRequest("Price override must not be negative")

        check_capacity(request.guest.adults, [room.max_adults for room in request.rooms])

        if request.package:
            self._validate_package(request, dates)
        return dates

    def _validate_package(self, request: BookingRequest, dates) -> None:
        package = request.package
        if len(request.rooms) != 1:
            raise InvalidBookingRequest("A package is booked for exactly one cabin")
        if request.coupon_code:
            raise InvalidBookingRequest("Coupons cannot be combined with packages")
        base_nights = package.nights or 1
        if dates.nights % base_nights != 0:
            raise InvalidBookingRequest(
                f"This package is valid only for multiples of {base_nights} night(s). "
                f"You selected {dates.nights} night(s)."
            )
        if package.valid_from and dates.check_in < package.valid_from:
            raise InvalidBookingRequest(
                f"Package {package.name} is available for check-in from {package.valid_from.isoformat()}"
            )
        if package.valid_until and dates.check_out > package.valid_until:
            raise InvalidBookingRequest(
                f"Package {package.name} is available for check-out until {package.valid_until.isoformat()}"
            )
        unit_id = request.rooms[0].unit.id
        if package.room_type_ids and unit_id not in package.room_type_ids:
            raise InvalidBookingRequest(f"{request.rooms[0].unit.label} is not part of package {package.name}")

    def _price_extras(self, request: BookingRequest) -> list[ExtraLine]:
        if request.package:
            return list(request.package.extras)
        wanted = {str(key): int(qty) for key, qty in request.extra_quantities.items() if int(qty) > 0}
        if not wanted:
            return []
        try:
            return price_extras(wanted, self.find_extras(wanted.keys()))
        except KeyError as e:
            raise InvalidBookingRequest(f"Unknown extra {e.args[0]}") from e

    def _quote(self, room: RoomOffer, request: BookingRequest, dates, extras_sum: Decimal) -> RoomQuote:
        if room.fixed_subtotal is not None:
            return fixed_quote(room.fixed_subtotal, dates)
        if request.package:
            return fixed_quote(package_room_subtotal(request.package.price, extras_sum), dates)
        if request.price_override_per_night is not None:
            return quote_override(request.price_override_per_night, dates)
        return quote_stay(room.rates, dates)

    def _apply_coupon(self, request: BookingRequest, room_subtotal: Decimal, extras) -> AppliedCoupon | None:
        code = normalize_code(request.coupon_code)
        if not code:
            return None
        already_held = code == normalize_code(request.current_coupon_code)
        return resolve_coupon(
            self.find_coupons(code),
            room_subtotal,
            extras,
            self.today(),
            currency=request.currency,
            check_usage=not already_held,
        )

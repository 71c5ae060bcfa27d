from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from apps.bookings.domain.assembler import BookingAssembler, BookingRequest, PackageTerms, RoomOffer
from apps.bookings.domain.availability import AvailabilityResolver, StaySnapshot, UnitRef
from apps.bookings.domain.entities import GuestDetails
from apps.bookings.domain.pricing import NightlyRates
from apps.catalog.domain import ExtraLine
from apps.coupons.domain import CouponScope, CouponTerms, DiscountType

TODAY = date(2025, 1, 1)
RATES = NightlyRates(weekday=Decimal("100"), weekend=Decimal("150"))
LAKE = RoomOffer(unit=UnitRef(id=1, code="CAB1", name="Lake"), rates=RATES, max_adults=2)
FOREST = RoomOffer(unit=UnitRef(id=2, code="CAB2", name="Forest"), rates=RATES, max_adults=3)

EXTRAS = {
    "5": SimpleNamespace(price=Decimal("25"), code="BRK", name="Breakfast"),
    "6": SimpleNamespace(price=Decimal("40"), code="KAY", name="Kayak"),
}


class Store:
    def __init__(self, stays=(), blocked=()):
        self.stays = list(stays)
        self.blocked = list(blocked)

    def reservations_for(self, unit, dates):
        return self.stays

    def blocked_dates_for(self, unit, dates):
        return [day for unit_id, day in self.blocked if unit_id == unit.id]


def make_assembler(stays=(), blocked=(), coupons=()):
    by_code = {}
    for coupon in coupons:
        by_code.setdefault(coupon.code, []).append(coupon)
    return BookingAssembler(
        AvailabilityResolver(Store(stays, blocked)),
        find_coupons=lambda code: by_code.get(code, []),
        find_extras=lambda ids: {key: EXTRAS[key] for key in ids if key in EXTRAS},
        today=lambda: TODAY,
    )


def request(**overrides):
    values = dict(
        rooms=[LAKE],
        check_in="2025-01-06",
        check_out="2025-01-08",
        guest=GuestDetails(first_name="Ama", last_name="Mensah", email="ama@example.com", adults=2),
    )
    values.update(overrides)
    return BookingRequest(**values)


def test_weekday_stay_is_priced_and_accepted():
    result = make_assembler().assemble(request())

    assert result.ok
    assert result.plan.room_subtotal == Decimal("200")
    assert result.plan.total.amount == Decimal("200")
    assert result.plan.leader.adults == 2


def test_weekend_stay_uses_weekend_rate():
    result = make_assembler().assemble(request(check_in="2025-01-10", check_out="2025-01-12"))

    assert result.plan.room_subtotal == Decimal("300")


def test_rooms_coupon_applies_to_room_subtotal_only():
    coupon = CouponTerms(
        code="TEN",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        applies_to=CouponScope.ROOMS,
    )

    result = make_assembler(coupons=[coupon]).assemble(
        request(coupon_code=" ten ", extra_quantities={"5": 2})
    )

    assert result.ok
    assert result.plan.discount == Decimal("20")
    assert result.plan.total.amount == Decimal("230")
    assert result.plan.leader.coupon_code == "TEN"


def test_fixed_coupon_never_makes_total_negative():
    coupon = CouponTerms(code="BIG", discount_type=DiscountType.FIXED, discount_value=Decimal("1000"))

    result = make_assembler(coupons=[coupon]).assemble(request(coupon_code="BIG", extra_quantities={"5": 2}))

    assert result.plan.discount == Decimal("250")
    assert result.plan.total.amount == Decimal("0")


def test_unknown_coupon_is_rejected_with_coupon_code():
    result = make_assembler().assemble(request(coupon_code="NOPE"))

    assert not result.ok
    assert result.code == "coupon_invalid"
    assert result.reason == "Invalid coupon code"


def test_exhausted_coupon_is_accepted_when_already_held():
    coupon = CouponTerms(
        code="ONCE",
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("50"),
        max_uses=1,
        current_uses=1,
    )
    assembler = make_assembler(coupons=[coupon])

    assert assembler.assemble(request(coupon_code="ONCE")).code == "coupon_exhausted"
    assert assembler.assemble(request(coupon_code="ONCE", current_coupon_code="once")).ok


def test_unknown_extra_is_rejected():
    result = make_assembler().assemble(request(extra_quantities={"99": 1}))

    assert not result.ok
    assert result.code == "invalid_request"
    assert "99" in result.reason


def test_zero_quantity_extras_are_ignored():
    result = make_assembler().assemble(request(extra_quantities={"5": 0, "99": 0}))

    assert result.ok
    assert result.plan.extras_total == Decimal("0")


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"check_in": ""}, "Please choose a check-in date"),
        ({"check_out": "not-a-date"}, "Please choose a check-out date"),
        ({"check_out": "2025-01-06"}, "Check-out must be after check-in"),
        ({"check_out": "2025-01-05"}, "Check-out must be after check-in"),
        ({"rooms": []}, "Please select at least one cabin"),
        ({"rooms": [LAKE, LAKE]}, "CAB1 (Lake) was selected more than once"),
        ({"price_override_per_night": Decimal("-1")}, "Price override must not be negative"),
    ],
)
def test_invalid_requests_are_rejected(overrides, message):
    result = make_assembler().assemble(request(**overrides))

    assert not result.ok
    assert result.reason == message


def test_adults_over_capacity_are_rejected():
    guest = GuestDetails(first_name="Ama", adults=6)

    result = make_assembler().assemble(request(rooms=[LAKE, FOREST], guest=guest))

    assert not result.ok
    assert "Combined capacity: 5" in result.reason


def test_occupied_unit_is_rejected():
    taken = StaySnapshot(9, 1, "CAB1", date(2025, 1, 7), date(2025, 1, 9), "confirmed")

    result = make_assembler(stays=[taken]).assemble(request())

    assert not result.ok
    assert result.code == "unavailable"
    assert result.reason == "CAB1 (Lake) is not available for the selected dates"


def test_excluded_reservation_does_not_block_its_own_edit():
    own = StaySnapshot(9, 1, "CAB1", date(2025, 1, 6), date(2025, 1, 8), "confirmed")

    assert make_assembler(stays=[own]).assemble(request(exclude_ids=[9])).ok


def test_blocked_night_rejects_the_unit():
    result = make_assembler(blocked=[(1, date(2025, 1, 7))]).assemble(request())

    assert result.code == "unavailable"


def test_price_override_replaces_nightly_rates():
    result = make_assembler().assemble(
        request(check_in="2025-01-09", check_out="2025-01-12", price_override_per_night=Decimal("80"))
    )

    assert result.plan.room_subtotal == Decimal("240")
    assert result.plan.price_override_per_night == Decimal("80")


def test_group_booking_splits_extras_and_discount_onto_leader():
    coupon = CouponTerms(code="FLAT", discount_type=DiscountType.FIXED, discount_value=Decimal("30"))
    guest = GuestDetails(first_name="Ama", adults=4)

    result = make_assembler(coupons=[coupon]).assemble(
        request(rooms=[LAKE, FOREST], guest=guest, coupon_code="FLAT", extra_quantities={"6": 1})
    )

    leader, member = result.drafts
    assert result.plan.is_group
    assert (leader.adults, member.adults) == (2, 2)
    assert leader.total == Decimal("200") + Decimal("40") - Decimal("30")
    assert member.total == Decimal("200")
    assert result.plan.total.amount == Decimal("410")


PACKAGE = PackageTerms(
    id=3,
    code="WKND",
    name="Weekend escape",
    price=Decimal("500"),
    nights=2,
    extras=(ExtraLine(extra_id="5", price=Decimal("25"), quantity=2),),
)


def test_package_price_includes_its_extras():
    result = make_assembler().assemble(request(package=PACKAGE))

    assert result.ok
    assert result.plan.leader.room_subtotal == Decimal("450")
    assert result.plan.extras_total == Decimal("50")
    assert result.plan.total.amount == Decimal("500")
    assert result.plan.package_id == 3


@pytest.mark.parametrize(
    "overrides, fragment",
    [
        ({"check_out": "2025-01-09"}, "multiples of 2 night(s)"),
        ({"rooms": [LAKE, FOREST], "guest": GuestDetails(adults=2)}, "exactly one cabin"),
        ({"coupon_code": "TEN"}, "Coupons cannot be combined"),
    ],
)
def test_package_rules(overrides, fragment):
    result = make_assembler().assemble(request(package=PACKAGE, **overrides))

    assert not result.ok
    assert fragment in result.reason


def test_package_limited_to_its_room_types():
    package = PackageTerms(id=4, code="FOR", name="Forest retreat", price=Decimal("400"), nights=2, room_type_ids=(2,))

    result = make_assembler().assemble(request(package=package))

    assert result.reason == "CAB1 (Lake) is not part of package Forest retreat"


@pytest.mark.parametrize(
    "window, fragment",
    [
        ({"valid_from": date(2025, 1, 7)}, "available for check-in from 2025-01-07"),
        ({"valid_until": date(2025, 1, 7)}, "available for check-out until 2025-01-07"),
    ],
)
def test_package_outside_validity_window_is_rejected(window, fragment):
    package = PackageTerms(id=5, code="JAN", name="January", price=Decimal("400"), nights=2, **window)

    result = make_assembler().assemble(request(package=package))

    assert not result.ok
    assert fragment in result.reason


def test_package_window_bounds_are_inclusive():
    package = PackageTerms(
        id=5,
        code="JAN",
        name="January",
        price=Decimal("400"),
        nights=2,
        valid_from=date(2025, 1, 6),
        valid_until=date(2025, 1, 8),
    )

    assert make_assembler().assemble(request(package=package)).ok

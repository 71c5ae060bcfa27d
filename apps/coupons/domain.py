"""
Coupon resolution

Pure rules: given the coupon rows matching a code and a candidate booking
(room subtotal, priced extras, today's date), either return the discount or
raise ``CouponRejected`` with the first failing rule. Nothing here touches
the database and nothing here consumes a use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Sequence

from apps.catalog.domain import ExtraLine, extras_total

ZERO = Decimal("0")


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CouponScope(str, Enum):
    ROOMS = "rooms"
    EXTRAS = "extras"
    BOTH = "both"


class CouponRejection(str, Enum):
    INVALID = "invalid"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"
    EXHAUSTED = "exhausted"
    BELOW_MINIMUM = "below_minimum"
    SCOPE_MISMATCH = "scope_mismatch"


class CouponRejected(Exception):
    """Raised when a coupon cannot be applied to the candidate booking."""

    def __init__(self, rejection: CouponRejection, message: str):
        super().__init__(message)
        self.rejection = rejection
        self.message = message


@dataclass(frozen=True)
class CouponTerms:
    """Snapshot of a coupon row taken for one pricing run."""

    code: str
    discount_type: DiscountType
    discount_value: Decimal
    applies_to: CouponScope = CouponScope.BOTH
    id: int | None = None
    extra_ids: tuple[str, ...] = field(default_factory=tuple)
    valid_from: date | None = None
    valid_until: date | None = None
    max_uses: int | None = None
    current_uses: int = 0
    max_uses_per_guest: int | None = None
    min_booking_amount: Decimal | None = None
    is_active: bool = True
    description: str = ""

    @property
    def has_allow_list(self) -> bool:
        return bool(self.extra_ids)

    @property
    def is_exhausted(self) -> bool:
        # 0 or empty means unlimited
        return bool(self.max_uses) and self.current_uses >= self.max_uses


@dataclass(frozen=True)
class AppliedCoupon:
    coupon: CouponTerms
    discount: Decimal
    base: Decimal

    @property
    def code(self) -> str:
        return self.coupon.code


def targeted_extras_total(coupon: CouponTerms, extras: Sequence[ExtraLine]) -> Decimal:
    """Extras total the coupon may discount: allow-listed lines only, or all."""
    if not coupon.has_allow_list:
        return extras_total(extras)
    allowed = set(coupon.extra_ids)
    return extras_total(line for line in extras if line.extra_id in allowed)


def compute_discount(coupon: CouponTerms, room_subtotal: Decimal, extras: Sequence[ExtraLine]) -> AppliedCoupon:
    """
    Discount for an already validated coupon.

    The base depends on scope; the result is clamped to the whole
    pre-discount subtotal, so a narrow base with a large fixed value still
    never produces a negative total.
    """
    all_extras = extras_total(extras)
    target = targeted_extras_total(coupon, extras)

    if coupon.applies_to == CouponScope.ROOMS:
        base = room_subtotal
    elif coupon.applies_to == CouponScope.EXTRAS:
        base = target
    else:
        base = room_subtotal + target

    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = base * coupon.discount_value / Decimal("100")
    else:
        discount = coupon.discount_value

    discount = max(min(discount, room_subtotal + all_extras), ZERO)
    return AppliedCoupon(coupon=coupon, discount=discount, base=base)


def validate_coupon(
    coupon: CouponTerms,
    room_subtotal: Decimal,
    extras: Sequence[ExtraLine],
    today: date,
    *,
    currency: str = "GHS",
    check_usage: bool = True,
) -> None:
    """
    Run the validation rules in order; the first failure raises.

    ``check_usage`` is turned off when re-pricing a booking that already
    holds this coupon: its use was counted when it was first applied.
    """
    if not coupon.is_active:
        raise CouponRejected(CouponRejection.INACTIVE, "This coupon is no longer active")

    if coupon.valid_until and coupon.valid_until < today:
        raise CouponRejected(CouponRejection.EXPIRED, "This coupon has expired")

    if coupon.valid_from and coupon.valid_from > today:
        raise CouponRejected(CouponRejection.NOT_YET_VALID, "This coupon is not valid yet")

    if check_usage and coupon.is_exhausted:
        raise CouponRejected(CouponRejection.EXHAUSTED, "This coupon has reached its usage limit")

    subtotal = room_subtotal + extras_total(extras)
    if coupon.min_booking_amount and subtotal < coupon.min_booking_amount:
        raise CouponRejected(
            CouponRejection.BELOW_MINIMUM,
            f"Minimum booking amount of {currency} {coupon.min_booking_amount} required",
        )

    if coupon.applies_to in (CouponScope.EXTRAS, CouponScope.BOTH) and coupon.has_allow_list:
        selected = {line.extra_id for line in extras}
        if not selected.intersection(coupon.extra_ids):
            raise CouponRejected(
                CouponRejection.SCOPE_MISMATCH,
                "This coupon does not apply to the selected extras",
            )


def resolve_coupon(
    matches: Sequence[CouponTerms],
    room_subtotal: Decimal,
    extras: Sequence[ExtraLine],
    today: date,
    *,
    currency: str = "GHS",
    check_usage: bool = True,
) -> AppliedCoupon:
    """Validate the rows found for a code and compute the discount."""
    if len(matches) != 1:
        raise CouponRejected(CouponRejection.INVALID, "Invalid coupon code")
    coupon = matches[0]
    validate_coupon(
        coupon,
        room_subtotal,
        extras,
        today,
        currency=currency,
        check_usage=check_usage,
    )
    return compute_discount(coupon, room_subtotal, extras)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()

"""
Booking Domain Entities

- GuestDetails: who the booking is for
- ReservationDraft: one unit of a booking, ready to be written
- BookingPlan: aggregate of the drafts produced by one assemble run
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import secrets

from shared.domain.base import Aggregate, ValueObject
from shared.domain.value_objects import DateRange, Money
from apps.catalog.domain import ExtraLine, extras_total
from apps.coupons.domain import AppliedCoupon
from apps.bookings.domain.availability import UnitRef
from apps.bookings.domain.pricing import ZERO, booking_total


def generate_confirmation_code() -> str:
    """B + six random characters + the last four digits of the clock, e.g. B3F9A1C4821"""
    stamp = str(int(datetime.now().timestamp() * 1000))[-4:]
    return f"B{secrets.token_hex(3).upper()}{stamp}"


@dataclass(frozen=True)
class GuestDetails(ValueObject):
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    country_code: str = ''
    phone: str = ''
    adults: int = 1
    children: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class ReservationDraft:
    """
    One reservation row in the making

    ``reservation_id`` is set when the draft updates an existing row
    (edits); new rows get their id on insert.
    """
    unit: UnitRef
    room_subtotal: Decimal
    weekday_nights: int = 0
    weekend_nights: int = 0
    adults: int = 0
    extras: List[ExtraLine] = field(default_factory=list)
    discount: Decimal = ZERO
    coupon_code: str = ''
    is_leader: bool = False
    reservation_id: Optional[int] = None
    confirmation_code: str = ''

    @property
    def extras_total(self) -> Decimal:
        return extras_total(self.extras)

    @property
    def total(self) -> Decimal:
        return booking_total(self.room_subtotal, self.extras_total, self.discount)


@dataclass(kw_only=True, eq=False)
class BookingPlan(Aggregate):
    """
    Booking Aggregate Root

    Invariants:
    - the first draft is the leader; it alone carries extras, coupon and discount
    - members carry their own room subtotal only
    - group fields are written only when there is more than one draft
    """
    dates: DateRange
    guest: GuestDetails
    drafts: List[ReservationDraft]
    currency: str = 'GHS'
    coupon: Optional[AppliedCoupon] = None
    package_id: Optional[int] = None
    status: str = 'pending'
    payment_status: str = 'unpaid'
    price_override_per_night: Optional[Decimal] = None
    is_influencer: bool = False
    notes: str = ''
    group_code: str = ''
    removed_ids: List[int] = field(default_factory=list)

    @property
    def leader(self) -> ReservationDraft:
        return self.drafts[0]

    @property
    def members(self) -> List[ReservationDraft]:
        return self.drafts[1:]

    @property
    def is_group(self) -> bool:
        return len(self.drafts) > 1

    @property
    def nights(self) -> int:
        return self.dates.nights

    @property
    def room_subtotal(self) -> Decimal:
        """Sum over every unit; shown to the operator, never stored as one field"""
        return sum((draft.room_subtotal for draft in self.drafts), ZERO)

    @property
    def extras_total(self) -> Decimal:
        return self.leader.extras_total

    @property
    def discount(self) -> Decimal:
        return self.coupon.discount if self.coupon else ZERO

    @property
    def total(self) -> Money:
        return Money(booking_total(self.room_subtotal, self.extras_total, self.discount), self.currency)

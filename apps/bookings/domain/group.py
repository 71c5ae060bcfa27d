"""
Group booking coordinator

Several units booked together are stored as one row per unit. The first
unit is the leader: it carries the extras, the coupon and the discount,
and its id and confirmation code name the group. The other rows are
members that only carry their own room price.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

from apps.catalog.domain import ExtraLine
from apps.coupons.domain import AppliedCoupon

from apps.bookings.exceptions import InvalidBookingRequest
from apps.bookings.domain.availability import UnitRef
from apps.bookings.domain.entities import ReservationDraft, generate_confirmation_code
from apps.bookings.domain.pricing import ZERO, RoomQuote


def distribute_adults(total_adults: int, capacities: Sequence[int]) -> list[int]:
    """Fill units in order up to their capacity; units without capacity get none."""
    assigned = [0] * len(capacities)
    remaining = max(total_adults, 0)
    for index, capacity in enumerate(capacities):
        if remaining <= 0:
            break
        if capacity <= 0:
            continue
        take = min(capacity, remaining)
        assigned[index] = take
        remaining -= take
    return assigned


def check_capacity(total_adults: int, capacities: Sequence[int]) -> None:
    combined = sum(max(capacity, 0) for capacity in capacities)
    if total_adults > combined:
        raise InvalidBookingRequest(
            f"Selected cabins cannot accommodate {total_adults} adults. "
            f"Combined capacity: {combined}. "
            "Please select additional cabins or reduce the number of adults."
        )


@dataclass(frozen=True)
class ExistingReservation:
    """A stored row of the booking being edited, leader first."""

    id: int
    confirmation_code: str
    group_reservation_id: int | None = None
    group_reservation_code: str = ""


@dataclass
class GroupLayout:
    """Outcome of matching edited drafts against the stored rows."""

    drafts: list[ReservationDraft]
    group_code: str = ""
    removed_ids: list[int] = field(default_factory=list)


class GroupCoordinator:
    def split(
        self,
        quotes: Sequence[tuple[UnitRef, RoomQuote]],
        adults: Sequence[int],
        extras: Sequence[ExtraLine],
        coupon: AppliedCoupon | None,
        discount: Decimal = ZERO,
    ) -> list[ReservationDraft]:
        drafts = []
        for index, (unit, quote) in enumerate(quotes):
            is_leader = index == 0
            drafts.append(
                ReservationDraft(
                    unit=unit,
                    room_subtotal=quote.subtotal,
                    weekday_nights=quote.weekday_nights,
                    weekend_nights=quote.weekend_nights,
                    adults=adults[index] if index < len(adults) else 0,
                    extras=list(extras) if is_leader else [],
                    discount=discount if is_leader else ZERO,
                    coupon_code=coupon.code if (is_leader and coupon) else "",
                    is_leader=is_leader,
                )
            )
        return drafts

    def assign_new(self, drafts: list[ReservationDraft]) -> GroupLayout:
        """Codes for a brand new booking; the group code is the leader's own code."""
        for draft in drafts:
            draft.confirmation_code = generate_confirmation_code()
        group_code = drafts[0].confirmation_code if len(drafts) > 1 else ""
        return GroupLayout(drafts=drafts, group_code=group_code)

    def reconcile(self, drafts: list[ReservationDraft], existing: Sequence[ExistingReservation]) -> GroupLayout:
        """
        Map edited drafts onto stored rows by position.

        Matching rows are updated and keep their codes, extra units become
        new member rows coded ``<group code>-R<n>`` with the first unused n,
        surplus rows are removed. A single reservation grown to several
        units becomes the leader of a new group named after its own code;
        a group shrunk to one unit stops being a group.
        """
        if not existing:
            raise InvalidBookingRequest("Reservation to edit was not found")

        leader = existing[0]
        if len(drafts) > 1:
            group_code = leader.group_reservation_code or leader.confirmation_code
        else:
            group_code = ""

        taken = {row.confirmation_code for row in existing if row.confirmation_code}
        suffix = 1
        for index, draft in enumerate(drafts):
            if index < len(existing):
                draft.reservation_id = existing[index].id
                draft.confirmation_code = existing[index].confirmation_code or generate_confirmation_code()
            else:
                suffix = max(suffix, index + 1)
                while f"{group_code}-R{suffix}" in taken:
                    suffix += 1
                draft.confirmation_code = f"{group_code}-R{suffix}"
                taken.add(draft.confirmation_code)

        removed = [row.id for row in existing[len(drafts):]]
        return GroupLayout(drafts=drafts, group_code=group_code, removed_ids=removed)

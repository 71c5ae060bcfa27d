"""ORM-backed stores for reservations and blocked dates."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from django.db import DatabaseError  # type: ignore
from django.db.models import Q  # type: ignore

from shared.domain.value_objects import DateRange

from .domain.availability import RELEASED_STATUSES, StaySnapshot, UnitRef
from .domain.entities import BookingPlan, ReservationDraft
from .domain.group import ExistingReservation
from .domain.pricing import to_cents
from .exceptions import ReservationNotFound, StoreUnavailable
from .models import BlockedDate, Reservation, ReservationExtra

logger = logging.getLogger(__name__)


def _unit_filter(unit: UnitRef, id_field: str, code_field: str) -> Q | None:
    condition = None
    if unit.id is not None:
        condition = Q(**{id_field: unit.id})
    if unit.code:
        by_code = Q(**{f"{code_field}__iexact": unit.code})
        condition = by_code if condition is None else condition | by_code
    return condition


class DjangoAvailabilityStore:
    """Reads for the availability resolver; database errors become ``StoreUnavailable``."""

    def reservations_for(self, unit: UnitRef, dates: DateRange) -> list[StaySnapshot]:
        condition = _unit_filter(unit, "room_type_id", "room_type_code")
        if condition is None:
            return []
        try:
            rows = (
                Reservation.objects.filter(condition)
                .exclude(status__in=RELEASED_STATUSES)
                .filter(check_in__lt=dates.check_out, check_out__gt=dates.check_in)
                .values_list("id", "room_type_id", "room_type_code", "check_in", "check_out", "status")
            )
            return [StaySnapshot(*row) for row in rows]
        except DatabaseError as e:
            raise StoreUnavailable(str(e)) from e

    def blocked_dates_for(self, unit: UnitRef, dates: DateRange) -> list[date]:
        condition = _unit_filter(unit, "room_type_id", "room_type__code")
        if condition is None:
            return []
        try:
            return list(
                BlockedDate.objects.filter(condition)
                .filter(blocked_date__gte=dates.check_in, blocked_date__lt=dates.check_out)
                .values_list("blocked_date", flat=True)
            )
        except DatabaseError as e:
            raise StoreUnavailable(str(e)) from e


class ReservationRepository:
    def get(self, reservation_id) -> Reservation:
        try:
            return Reservation.objects.get(pk=reservation_id)
        except (Reservation.DoesNotExist, ValueError, TypeError):
            raise ReservationNotFound(f"Reservation {reservation_id} not found")

    def load_group(self, reservation: Reservation) -> list[Reservation]:
        """The reservation and its siblings, leader first then by id."""
        group_id = reservation.group_reservation_id
        if not group_id:
            return [reservation]
        rows = list(Reservation.objects.filter(Q(group_reservation_id=group_id) | Q(pk=group_id)))
        rows.sort(key=lambda row: (row.pk != group_id, row.pk))
        return rows

    @staticmethod
    def as_existing(rows: Iterable[Reservation]) -> list[ExistingReservation]:
        return [
            ExistingReservation(
                id=row.pk,
                confirmation_code=row.confirmation_code,
                group_reservation_id=row.group_reservation_id,
                group_reservation_code=row.group_reservation_code,
            )
            for row in rows
        ]

    def create(self, plan: BookingPlan) -> list[Reservation]:
        leader = None
        saved = []
        for draft in plan.drafts:
            row = Reservation.objects.create(**self._row_fields(plan, draft))
            if leader is None:
                leader = row
                if plan.is_group:
                    row.group_reservation = row
                    row.group_reservation_code = row.confirmation_code
                    row.save(update_fields=["group_reservation", "group_reservation_code"])
            else:
                row.group_reservation = leader
                row.group_reservation_code = leader.confirmation_code
                row.save(update_fields=["group_reservation", "group_reservation_code"])
            draft.reservation_id = row.pk
            saved.append(row)

        self._write_extras(leader, plan.leader)
        logger.info(f"Stored booking {leader.confirmation_code} with {len(saved)} reservation(s)")
        return saved

    def update(self, plan: BookingPlan) -> list[Reservation]:
        """Write an edited booking over its stored rows, adding and removing units as planned."""
        if plan.removed_ids:
            ReservationExtra.objects.filter(reservation_id__in=plan.removed_ids).delete()
            Reservation.objects.filter(pk__in=plan.removed_ids).delete()
            logger.info(f"Removed reservations {plan.removed_ids} from booking {plan.leader.confirmation_code}")

        saved = []
        for draft in plan.drafts:
            fields = self._row_fields(plan, draft)
            if draft.reservation_id:
                Reservation.objects.filter(pk=draft.reservation_id).update(**fields)
                row = Reservation.objects.get(pk=draft.reservation_id)
            else:
                row = Reservation.objects.create(**fields)
                draft.reservation_id = row.pk
            saved.append(row)

        leader = saved[0]
        group_id = leader.pk if plan.is_group else None
        Reservation.objects.filter(pk__in=[row.pk for row in saved]).update(
            group_reservation_id=group_id,
            group_reservation_code=plan.group_code if plan.is_group else "",
        )

        ReservationExtra.objects.filter(reservation_id__in=[row.pk for row in saved]).delete()
        self._write_extras(leader, plan.leader)

        for row in saved:
            row.refresh_from_db()
        logger.info(f"Updated booking {leader.confirmation_code} ({len(saved)} reservation(s))")
        return saved

    def set_status(self, rows: Iterable[Reservation], status: str | None, payment_status: str | None) -> int:
        changes = {}
        if status:
            changes["status"] = status
        if payment_status:
            changes["payment_status"] = payment_status
        if not changes:
            return 0
        return Reservation.objects.filter(pk__in=[row.pk for row in rows]).update(**changes)

    def _write_extras(self, reservation: Reservation, draft: ReservationDraft) -> None:
        ReservationExtra.objects.bulk_create(
            [
                ReservationExtra(
                    reservation=reservation,
                    extra_id=int(line.extra_id) if str(line.extra_id).isdigit() else None,
                    extra_code=line.code,
                    extra_name=line.name,
                    price=to_cents(line.price),
                    quantity=line.quantity,
                    subtotal=to_cents(line.subtotal),
                )
                for line in draft.extras
            ]
        )

    @staticmethod
    def _row_fields(plan: BookingPlan, draft: ReservationDraft) -> dict:
        guest = plan.guest
        fields = {
            "room_type_id": draft.unit.id,
            "room_type_code": draft.unit.code,
            "room_name": draft.unit.name,
            "check_in": plan.dates.check_in,
            "check_out": plan.dates.check_out,
            "nights": plan.nights,
            "guest_first_name": guest.first_name,
            "guest_last_name": guest.last_name,
            "guest_email": guest.email,
            "country_code": guest.country_code,
            "guest_phone": guest.phone,
            "adults": draft.adults,
            "children": guest.children if draft.is_leader else 0,
            "status": plan.status,
            "payment_status": plan.payment_status,
            "room_subtotal": to_cents(draft.room_subtotal),
            "extras_total": to_cents(draft.extras_total),
            "discount_amount": to_cents(draft.discount),
            "total": to_cents(draft.total),
            "currency": plan.currency,
            "coupon_code": draft.coupon_code,
            "package_id": plan.package_id,
            "price_override_per_night": plan.price_override_per_night,
            "is_influencer": plan.is_influencer,
            "notes": plan.notes,
        }
        if draft.confirmation_code:
            fields["confirmation_code"] = draft.confirmation_code
        return fields


class BlockedDateRepository:
    def block(self, room_type_ids: list[int], dates: DateRange, reason: str) -> int:
        """Replace any blocks in the range with one row per unit per night."""
        self.unblock(room_type_ids, dates)
        rows = [
            BlockedDate(room_type_id=room_type_id, blocked_date=night, reason=reason)
            for night in dates.iter_nights()
            for room_type_id in room_type_ids
        ]
        BlockedDate.objects.bulk_create(rows)
        return len(rows)

    def unblock(self, room_type_ids: list[int], dates: DateRange) -> int:
        deleted, _ = BlockedDate.objects.filter(
            room_type_id__in=room_type_ids,
            blocked_date__gte=dates.check_in,
            blocked_date__lt=dates.check_out,
        ).delete()
        return deleted

"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

import requests
from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore

from .models import Reservation
from .repositories import ReservationRepository

logger = logging.getLogger(__name__)


def _money(value) -> str:
    return f"{value:.2f}"


def build_email_payload(reservation: Reservation) -> dict:
    """Everything the email service needs to render a confirmation, group rooms included."""
    rows = ReservationRepository().load_group(reservation)
    leader = rows[0]
    return {
        "confirmation_code": leader.confirmation_code,
        "group_reservation_code": leader.group_reservation_code or None,
        "guest_first_name": leader.guest_first_name,
        "guest_last_name": leader.guest_last_name,
        "guest_email": leader.guest_email,
        "country_code": leader.country_code,
        "guest_phone": leader.guest_phone,
        "check_in": leader.check_in.isoformat(),
        "check_out": leader.check_out.isoformat(),
        "nights": leader.nights,
        "adults": sum(row.adults for row in rows),
        "children": sum(row.children for row in rows),
        "currency": leader.currency,
        "status": leader.status,
        "payment_status": leader.payment_status,
        "package_name": leader.package.name if leader.package_id else None,
        "coupon_code": leader.coupon_code or None,
        "rooms": [
            {
                "confirmation_code": row.confirmation_code,
                "room_type_code": row.room_type_code,
                "room_name": row.room_name,
                "adults": row.adults,
                "room_subtotal": _money(row.room_subtotal),
                "total": _money(row.total),
            }
            for row in rows
        ],
        "extras": [
            {
                "extra_name": line.extra_name,
                "price": _money(line.price),
                "quantity": line.quantity,
                "subtotal": _money(line.subtotal),
            }
            for line in leader.extras.all()
        ],
        "room_subtotal": _money(sum(row.room_subtotal for row in rows)),
        "extras_total": _money(leader.extras_total),
        "discount_amount": _money(leader.discount_amount),
        "total": _money(sum(row.total for row in rows)),
    }


@shared_task(name="bookings.send_booking_email")
def send_booking_email(reservation_id: int) -> bool:
    """
    Post a booking to the confirmation email service.

    Fire and forget: any failure is logged and reported as False, the
    booking itself is already committed.
    """
    url = getattr(settings, "BOOKING_EMAIL_API_URL", "")
    if not url:
        logger.warning(f"BOOKING_EMAIL_API_URL is not set, skipping email for reservation {reservation_id}")
        return False

    try:
        reservation = Reservation.objects.select_related("package").get(pk=reservation_id)
    except Reservation.DoesNotExist:
        logger.warning(f"Reservation {reservation_id} no longer exists, email not sent")
        return False

    payload = {"booking": build_email_payload(reservation)}
    try:
        response = requests.post(url, json=payload, timeout=settings.BOOKING_EMAIL_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Confirmation email for {reservation.confirmation_code} failed: {e}", exc_info=True)
        return False

    logger.info(f"Confirmation email sent for {reservation.confirmation_code}")
    return True

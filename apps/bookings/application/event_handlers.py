"""
Booking Event Handlers

Side effects of committed bookings. They only enqueue work; a failure
here is logged by the message bus and never reaches the booking.
"""

import logging

from apps.bookings.domain.events import BookingCreated, BookingUpdated

logger = logging.getLogger(__name__)


def send_confirmation_email(event: BookingCreated | BookingUpdated):
    if not event.send_email:
        logger.debug(f"Email not requested for booking {event.confirmation_code}")
        return

    from apps.bookings.tasks import send_booking_email

    send_booking_email.delay(event.reservation_ids[0])
    logger.info(f"Queued confirmation email for booking {event.confirmation_code}")

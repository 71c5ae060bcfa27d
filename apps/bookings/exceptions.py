"""Exceptions raised while assembling or saving a booking."""

from __future__ import annotations


class BookingRejected(Exception):
    """A booking attempt was refused; ``reason`` is shown to the operator as is."""

    code = "rejected"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidBookingRequest(BookingRejected):
    """Input validation failed before any availability or pricing work."""

    code = "invalid_request"


class UnitUnavailable(BookingRejected):
    """A selected unit is reserved or blocked for part of the stay."""

    code = "unavailable"

    def __init__(self, unit_label: str):
        super().__init__(f"{unit_label} is not available for the selected dates")
        self.unit_label = unit_label


class ReservationNotFound(BookingRejected):
    code = "not_found"


class StoreUnavailable(Exception):
    """A read from the reservation or blocked-date store failed."""

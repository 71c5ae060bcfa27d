"""
Booking Domain Events

Published on the message bus after the booking transaction commits.
"""

from dataclasses import dataclass
from typing import List

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: a custom or package booking was written

    Triggers:
    - Send the confirmation email
    """
    reservation_ids: List[int]
    confirmation_code: str
    group_code: str = ''
    send_email: bool = True


@dataclass(kw_only=True)
class BookingUpdated(DomainEvent):
    """
    Event: an existing booking was re-priced and saved

    ``send_email`` mirrors the operator's choice on the edit form.
    """
    reservation_ids: List[int]
    confirmation_code: str
    group_code: str = ''
    send_email: bool = False

"""Bookings app package.

Reservations, blocked dates and the booking engine: availability checks,
weekday/weekend pricing, coupon application and multi-cabin group
bookings. Writes run in one transaction with the selected room types
locked, so a group is stored completely or not at all.
"""

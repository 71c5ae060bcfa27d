"""Coupons app package.

Coupon definitions, the pure resolver deciding whether a code applies to a
candidate booking and how much it takes off, and the guarded redemption
counter used when a booking is written.
"""

"""Coupon store backed by the Django ORM."""

from __future__ import annotations

import logging

from django.db.models import F, Q  # type: ignore

from .domain import CouponTerms, normalize_code
from .models import Coupon

logger = logging.getLogger(__name__)


class CouponRepository:
    def find_by_code(self, code: str) -> list[CouponTerms]:
        """All coupons matching a code, case-insensitively (codes are stored upper-cased)."""
        normalized = normalize_code(code)
        if not normalized:
            return []
        return [coupon.to_terms() for coupon in Coupon.objects.filter(code=normalized)]

    def redeem(self, coupon_id: int) -> bool:
        """
        Count one use of a coupon.

        Single conditional UPDATE: the row is only incremented while it is
        still below ``max_uses``, so two bookings racing for the last use
        cannot both succeed. Returns False when the limit was already hit.
        Must run inside the booking transaction so a rolled back booking
        gives its use back.
        """
        updated = (
            Coupon.objects.filter(pk=coupon_id)
            .filter(Q(max_uses__isnull=True) | Q(max_uses=0) | Q(current_uses__lt=F("max_uses")))
            .update(current_uses=F("current_uses") + 1)
        )
        if not updated:
            logger.warning(f"Coupon {coupon_id} could not be redeemed: usage limit reached")
        return bool(updated)

"""Coupon model."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .domain import CouponScope, CouponTerms, DiscountType, normalize_code


class Coupon(models.Model):
    class DiscountTypeChoices(models.TextChoices):
        PERCENTAGE = DiscountType.PERCENTAGE.value, _("Percentage")
        FIXED = DiscountType.FIXED.value, _("Fixed amount")

    class AppliesTo(models.TextChoices):
        ROOMS = CouponScope.ROOMS.value, _("Rooms only")
        EXTRAS = CouponScope.EXTRAS.value, _("Extras only")
        BOTH = CouponScope.BOTH.value, _("Rooms and extras")

    code = models.CharField(max_length=40, unique=True)
    description = models.CharField(max_length=255, blank=True)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountTypeChoices.choices,
        default=DiscountTypeChoices.PERCENTAGE,
    )
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    applies_to = models.CharField(max_length=10, choices=AppliesTo.choices, default=AppliesTo.BOTH)
    extra_ids = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Extras the coupon is limited to. Empty means every extra in scope."),
    )
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    current_uses = models.PositiveIntegerField(default=0)
    max_uses_per_guest = models.PositiveIntegerField(null=True, blank=True)
    min_booking_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Coupon")
        verbose_name_plural = _("Coupons")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.code

    def save(self, *args, **kwargs):  # type: ignore
        self.code = normalize_code(self.code)
        super().save(*args, **kwargs)

    def to_terms(self) -> CouponTerms:
        return CouponTerms(
            id=self.pk,
            code=self.code,
            description=self.description,
            discount_type=DiscountType(self.discount_type),
            discount_value=Decimal(self.discount_value),
            applies_to=CouponScope(self.applies_to),
            extra_ids=tuple(str(extra_id) for extra_id in (self.extra_ids or [])),
            valid_from=self.valid_from,
            valid_until=self.valid_until,
            max_uses=self.max_uses,
            current_uses=self.current_uses or 0,
            max_uses_per_guest=self.max_uses_per_guest,
            min_booking_amount=(
                Decimal(self.min_booking_amount) if self.min_booking_amount is not None else None
            ),
            is_active=self.is_active,
        )

"""Admin registration for coupons."""

from __future__ import annotations

from django.contrib import admin

from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "discount_value",
        "applies_to",
        "current_uses",
        "max_uses",
        "valid_from",
        "valid_until",
        "is_active",
    )
    list_filter = ("is_active", "discount_type", "applies_to")
    search_fields = ("code", "description")
    readonly_fields = ("current_uses", "created_at", "updated_at")

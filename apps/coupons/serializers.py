"""Serializers for coupon endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "description",
            "discount_type",
            "discount_value",
            "applies_to",
            "extra_ids",
            "valid_from",
            "valid_until",
            "max_uses",
            "current_uses",
            "max_uses_per_guest",
            "min_booking_amount",
            "is_active",
        ]
        read_only_fields = fields


class CouponPreviewSerializer(serializers.Serializer):
    """A code checked against a candidate booking, before anything is saved."""

    code = serializers.CharField()
    room_subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    extras = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False, default=dict)

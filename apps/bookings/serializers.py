"""Serializers for the booking API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .application.command_handlers import (
    BlockDatesCommand,
    BookPackageCommand,
    ChangeStatusCommand,
    CreateBookingCommand,
    EditBookingCommand,
    UnblockDatesCommand,
)
from .domain.entities import GuestDetails
from .models import BlockedDate, Reservation, ReservationExtra


class GuestSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    last_name = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    country_code = serializers.CharField(max_length=8, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    adults = serializers.IntegerField(min_value=1, default=1)
    children = serializers.IntegerField(min_value=0, default=0)

    @staticmethod
    def to_guest(data: dict) -> GuestDetails:
        return GuestDetails(**data)


class BookingCreateSerializer(serializers.Serializer):
    """Custom booking of one or more cabins. Dates are checked by the engine, not here."""

    rooms = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    check_in = serializers.CharField(allow_blank=True)
    check_out = serializers.CharField(allow_blank=True)
    guest = GuestSerializer(required=False)
    extras = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False, default=dict)
    coupon_code = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(choices=Reservation.Status.choices, default=Reservation.Status.PENDING)
    payment_status = serializers.ChoiceField(
        choices=Reservation.PaymentStatus.choices,
        default=Reservation.PaymentStatus.UNPAID,
    )
    price_override_per_night = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True, default=None
    )
    is_influencer = serializers.BooleanField(default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    send_email = serializers.BooleanField(default=True)

    def to_command(self) -> CreateBookingCommand:
        data = dict(self.validated_data)
        guest = GuestSerializer.to_guest(data.pop("guest", None) or {})
        return CreateBookingCommand(guest=guest, **data)


class BookingEditSerializer(serializers.Serializer):
    """Partial edit; omitted fields keep their stored value."""

    rooms = serializers.ListField(child=serializers.CharField(), required=False)
    check_in = serializers.CharField(required=False)
    check_out = serializers.CharField(required=False)
    guest = GuestSerializer(required=False)
    extras = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False)
    coupon_code = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Reservation.Status.choices, required=False)
    payment_status = serializers.ChoiceField(choices=Reservation.PaymentStatus.choices, required=False)
    price_override_per_night = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    is_influencer = serializers.BooleanField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    send_email = serializers.BooleanField(default=False)

    def to_command(self, reservation_id: int) -> EditBookingCommand:
        data = dict(self.validated_data)
        if "guest" in data:
            data["guest"] = GuestSerializer.to_guest(data["guest"])
        if "price_override_per_night" in data and data["price_override_per_night"] is None:
            data.pop("price_override_per_night")
            data["clear_price_override"] = True
        return EditBookingCommand(reservation_id=reservation_id, **data)


class PackageBookingSerializer(serializers.Serializer):
    package = serializers.IntegerField()
    room = serializers.CharField()
    check_in = serializers.CharField()
    check_out = serializers.CharField()
    guest = GuestSerializer(required=False)
    status = serializers.ChoiceField(choices=Reservation.Status.choices, default=Reservation.Status.CONFIRMED)
    payment_status = serializers.ChoiceField(
        choices=Reservation.PaymentStatus.choices,
        default=Reservation.PaymentStatus.UNPAID,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    send_email = serializers.BooleanField(default=True)

    def to_command(self) -> BookPackageCommand:
        data = dict(self.validated_data)
        guest = GuestSerializer.to_guest(data.pop("guest", None) or {})
        return BookPackageCommand(package_id=data.pop("package"), guest=guest, **data)


class BlockDatesSerializer(serializers.Serializer):
    rooms = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    start = serializers.DateField(required=False, allow_null=True, default=None)
    end = serializers.DateField(required=False, allow_null=True, default=None)
    reason = serializers.ChoiceField(choices=BlockedDate.Reason.choices, default=BlockedDate.Reason.MAINTENANCE)

    def to_block_command(self) -> BlockDatesCommand:
        return BlockDatesCommand(**self.validated_data)

    def to_unblock_command(self) -> UnblockDatesCommand:
        data = dict(self.validated_data)
        data.pop("reason", None)
        return UnblockDatesCommand(**data)


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Reservation.Status.choices, required=False)
    payment_status = serializers.ChoiceField(choices=Reservation.PaymentStatus.choices, required=False)

    def validate(self, attrs):  # type: ignore
        if not attrs.get("status") and not attrs.get("payment_status"):
            raise serializers.ValidationError("Give a status or a payment status.")
        return attrs

    def to_command(self, reservation_id: int) -> ChangeStatusCommand:
        return ChangeStatusCommand(reservation_id=reservation_id, **self.validated_data)


class AvailabilityQuerySerializer(serializers.Serializer):
    room = serializers.CharField()
    check_in = serializers.CharField(required=False, allow_blank=True, default="")
    check_out = serializers.CharField(required=False, allow_blank=True, default="")


class ReservationExtraSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReservationExtra
        fields = ["id", "extra", "extra_code", "extra_name", "price", "quantity", "subtotal"]
        read_only_fields = fields


class ReservationSerializer(serializers.ModelSerializer):
    """One stored reservation row with its extras."""

    extras = ReservationExtraSerializer(many=True, read_only=True)
    group_reservation_id = serializers.ReadOnlyField()
    package_id = serializers.ReadOnlyField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "confirmation_code",
            "group_reservation_id",
            "group_reservation_code",
            "room_type",
            "room_type_code",
            "room_name",
            "check_in",
            "check_out",
            "nights",
            "guest_first_name",
            "guest_last_name",
            "guest_email",
            "country_code",
            "guest_phone",
            "adults",
            "children",
            "status",
            "payment_status",
            "room_subtotal",
            "extras_total",
            "discount_amount",
            "total",
            "currency",
            "coupon_code",
            "package_id",
            "price_override_per_night",
            "is_influencer",
            "notes",
            "extras",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

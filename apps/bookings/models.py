"""Booking models: reservations, their extras, blocked dates and the reporting weekend."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Reservation(models.Model):
    """One unit booked for one stay. Several rows sharing a leader form a group booking."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CHECKED_IN = "checked-in", _("Checked in")
        CHECKED_OUT = "checked-out", _("Checked out")
        CANCELLED = "cancelled", _("Cancelled")
        NO_SHOW = "no_show", _("No show")

    class PaymentStatus(models.TextChoices):
        UNPAID = "unpaid", _("Unpaid")
        PARTIAL = "partial", _("Partially paid")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    confirmation_code = models.CharField(max_length=40, unique=True)
    room_type = models.ForeignKey(
        "catalog.RoomType",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservations",
    )
    room_type_code = models.CharField(
        max_length=20,
        blank=True,
        help_text=_("Room code at booking time; older rows may only carry this."),
    )
    room_name = models.CharField(max_length=120, blank=True)
    check_in = models.DateField()
    check_out = models.DateField()
    nights = models.PositiveSmallIntegerField(default=1)
    guest_first_name = models.CharField(max_length=120, blank=True)
    guest_last_name = models.CharField(max_length=120, blank=True)
    guest_email = models.EmailField(blank=True)
    country_code = models.CharField(max_length=8, blank=True)
    guest_phone = models.CharField(max_length=32, blank=True)
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    room_subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    extras_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default=settings.BOOKING_DEFAULT_CURRENCY)
    coupon_code = models.CharField(max_length=40, blank=True)
    package = models.ForeignKey(
        "catalog.Package",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservations",
    )
    price_override_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_influencer = models.BooleanField(default=False)
    notes = models.TextField(blank=True)
    group_reservation = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="group_members",
        help_text=_("Leader reservation; the leader points at itself."),
    )
    group_reservation_code = models.CharField(max_length=40, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="reservation_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["room_type", "check_in", "check_out"]),
            models.Index(fields=["room_type_code", "check_in", "check_out"]),
            models.Index(fields=["group_reservation"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.confirmation_code} ({self.room_type_code or self.room_type_id})"

    @property
    def is_group_leader(self) -> bool:
        return self.group_reservation_id is not None and self.group_reservation_id == self.pk

    @property
    def guest_name(self) -> str:
        return f"{self.guest_first_name} {self.guest_last_name}".strip()


class ReservationExtra(models.Model):
    """Priced add-on attached to a reservation; rewritten wholesale on every edit."""

    reservation = models.ForeignKey(Reservation, on_delete=models.CASCADE, related_name="extras")
    extra = models.ForeignKey(
        "catalog.Extra",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservation_lines",
    )
    extra_code = models.CharField(max_length=40, blank=True)
    extra_name = models.CharField(max_length=120, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveSmallIntegerField(default=1)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        verbose_name = _("Reservation extra")
        verbose_name_plural = _("Reservation extras")

    def __str__(self) -> str:
        return f"{self.quantity} × {self.extra_name or self.extra_code}"


class BlockedDate(models.Model):
    """A single night an operator has taken a unit off sale."""

    class Reason(models.TextChoices):
        MAINTENANCE = "maintenance", _("Maintenance")
        STAFF_HOLIDAY = "staff_holiday", _("Staff holiday")
        PRIVATE_EVENT = "private_event", _("Private event")
        OTHER = "other", _("Other")

    room_type = models.ForeignKey("catalog.RoomType", on_delete=models.CASCADE, related_name="blocked_dates")
    blocked_date = models.DateField()
    reason = models.CharField(max_length=20, choices=Reason.choices, default=Reason.MAINTENANCE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Blocked date")
        verbose_name_plural = _("Blocked dates")
        ordering = ["blocked_date"]
        constraints = [
            models.UniqueConstraint(fields=["room_type", "blocked_date"], name="blocked_date_unique_per_room"),
        ]

    def __str__(self) -> str:
        return f"{self.room_type_id} blocked on {self.blocked_date}"


class WeekendDefinition(models.Model):
    """
    Which days of the week count as weekend in reports.

    Independent of pricing, which always treats Friday and Saturday
    nights as weekend.
    """

    day_of_week = models.PositiveSmallIntegerField(
        unique=True,
        help_text=_("0 = Monday … 6 = Sunday"),
    )
    is_weekend = models.BooleanField(default=False)

    class Meta:
        verbose_name = _("Reporting weekend day")
        verbose_name_plural = _("Reporting weekend days")
        ordering = ["day_of_week"]

    def __str__(self) -> str:
        return f"{self.day_of_week}: {'weekend' if self.is_weekend else 'weekday'}"

"""Catalog models: room types, extras and packages."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class RoomType(models.Model):
    """A bookable cabin."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=120)
    weekday_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Nightly rate Sunday to Thursday."),
    )
    weekend_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Nightly rate for Friday and Saturday nights."),
    )
    currency = models.CharField(max_length=3, default=settings.BOOKING_DEFAULT_CURRENCY)
    max_adults = models.PositiveSmallIntegerField(default=2)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room type")
        verbose_name_plural = _("Room types")
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(weekday_rate__gte=0) & models.Q(weekend_rate__gte=0),
                name="room_type_rates_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.code} – {self.name}"


class Extra(models.Model):
    """Priced add-on sold with a stay (transfer, breakfast, ...)."""

    code = models.CharField(max_length=40, blank=True)
    name = models.CharField(max_length=120)
    category = models.CharField(max_length=60, blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    currency = models.CharField(max_length=3, default=settings.BOOKING_DEFAULT_CURRENCY)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Extra")
        verbose_name_plural = _("Extras")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Package(models.Model):
    """Fixed-price stay: a base number of nights plus included extras."""

    code = models.CharField(max_length=40, unique=True)
    name = models.CharField(max_length=120)
    package_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    nights = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text=_("Stays must last a multiple of this many nights."),
    )
    valid_from = models.DateField(null=True, blank=True, help_text=_("First allowed check-in."))
    valid_until = models.DateField(null=True, blank=True, help_text=_("Last allowed check-out."))
    currency = models.CharField(max_length=3, default=settings.BOOKING_DEFAULT_CURRENCY)
    is_active = models.BooleanField(default=True)
    room_types = models.ManyToManyField(RoomType, blank=True, related_name="packages")
    extras = models.ManyToManyField(Extra, through="PackageExtra", blank=True, related_name="packages")

    class Meta:
        verbose_name = _("Package")
        verbose_name_plural = _("Packages")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(valid_from__isnull=True)
                | models.Q(valid_until__isnull=True)
                | models.Q(valid_until__gt=models.F("valid_from")),
                name="package_valid_window",
            ),
        ]

    def __str__(self) -> str:
        return self.name


class PackageExtra(models.Model):
    package = models.ForeignKey(Package, on_delete=models.CASCADE, related_name="package_extras")
    extra = models.ForeignKey(Extra, on_delete=models.CASCADE, related_name="package_links")
    quantity = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["package", "extra"], name="package_extra_unique"),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} × {self.extra.name}"

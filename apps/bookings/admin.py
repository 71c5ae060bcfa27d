"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import BlockedDate, Reservation, ReservationExtra, WeekendDefinition


class ReservationExtraInline(admin.TabularInline):
    model = ReservationExtra
    extra = 0
    readonly_fields = ("extra", "extra_code", "extra_name", "price", "quantity", "subtotal")
    can_delete = False


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "confirmation_code",
        "group_reservation_code",
        "room_type_code",
        "guest_name",
        "is_group_leader",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "total",
        "created_at",
    )
    list_filter = ("status", "payment_status", "check_in", "room_type", "is_influencer")
    search_fields = ("confirmation_code", "group_reservation_code", "guest_last_name", "guest_email")
    readonly_fields = (
        "confirmation_code",
        "group_reservation",
        "group_reservation_code",
        "room_subtotal",
        "extras_total",
        "discount_amount",
        "total",
        "nights",
        "created_at",
        "updated_at",
    )
    inlines = [ReservationExtraInline]


@admin.register(BlockedDate)
class BlockedDateAdmin(admin.ModelAdmin):
    list_display = ("room_type", "blocked_date", "reason", "created_at")
    list_filter = ("reason", "room_type")
    date_hierarchy = "blocked_date"


@admin.register(WeekendDefinition)
class WeekendDefinitionAdmin(admin.ModelAdmin):
    list_display = ("day_of_week", "is_weekend")
    list_editable = ("is_weekend",)

"""Admin registration for the catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Extra, Package, PackageExtra, RoomType


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "weekday_rate", "weekend_rate", "max_adults", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")


@admin.register(Extra)
class ExtraAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "category", "price", "currency", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("name", "code")


class PackageExtraInline(admin.TabularInline):
    model = PackageExtra
    extra = 0


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "package_price", "nights", "valid_from", "valid_until", "is_active")
    list_filter = ("is_active",)
    filter_horizontal = ("room_types",)
    inlines = [PackageExtraInline]

"""Catalog lookups used while assembling bookings."""

from __future__ import annotations

from typing import Iterable

from django.db.models import Q  # type: ignore

from .domain import package_lines
from .models import Extra, Package, RoomType


class CatalogRepository:
    def rooms_query(self, refs: Iterable):
        """
        Room types for a mix of ids and codes.

        Numeric values are ids; anything else is matched against the code,
        ignoring case. Ordered by id so concurrent bookings lock rows in the
        same order.
        """
        ids, codes = [], []
        for ref in refs:
            text = str(ref).strip()
            if text.isdigit():
                ids.append(int(text))
            elif text:
                codes.append(text)
        condition = Q(pk__in=ids)
        for code in codes:
            condition |= Q(code__iexact=code)
        return RoomType.objects.filter(condition).order_by("pk")

    def extras_by_id(self, extra_ids: Iterable[str]) -> dict[str, Extra]:
        ids = [int(str(extra_id)) for extra_id in extra_ids if str(extra_id).isdigit()]
        return {str(extra.pk): extra for extra in Extra.objects.filter(pk__in=ids)}

    def get_package(self, package_id, active_only: bool = True) -> Package | None:
        """A package with its rooms and extras; bookings being edited may hold an inactive one."""
        packages = Package.objects.filter(pk=package_id)
        if active_only:
            packages = packages.filter(is_active=True)
        return (
            packages
            .prefetch_related("room_types", "package_extras__extra")
            .first()
        )

    def package_extras(self, package: Package):
        return package_lines(list(package.package_extras.all()))

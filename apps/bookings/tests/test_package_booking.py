"""Integration tests for package bookings."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest import mock

from django.urls import reverse
from rest_framework import status

from apps.bookings.models import Reservation

from apps.bookings.tests.factories import guest, make_coupon, make_package
from apps.bookings.tests.test_booking_api import BookingAPITestCase


class PackageBookingAPITests(BookingAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        self.package = make_package("WKND", "500", nights=2, extras=[(self.breakfast, 2)])
        self.url = reverse("booking-package")

    def _book_package(self, **fields):
        payload = {
            "package": self.package.pk,
            "room": "LAKE",
            "check_in": "2025-01-10",
            "check_out": "2025-01-12",
            "guest": guest(),
            "send_email": False,
        }
        payload.update(fields)
        return self.client.post(self.url, payload, format="json")

    def test_package_price_is_split_between_room_and_extras(self) -> None:
        response = self._book_package()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total"], "500.00")
        reservation = Reservation.objects.get()
        self.assertEqual(reservation.package, self.package)
        self.assertEqual(reservation.status, Reservation.Status.CONFIRMED)
        self.assertEqual(reservation.room_subtotal, Decimal("450.00"))
        self.assertEqual(reservation.extras_total, Decimal("50.00"))
        self.assertEqual(reservation.total, Decimal("500.00"))
        self.assertEqual(list(reservation.extras.values_list("extra_name", "quantity")), [("Breakfast", 2)])

    def test_multiple_of_base_nights_is_accepted(self) -> None:
        response = self._book_package(check_in="2025-01-06", check_out="2025-01-10")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(Reservation.objects.get().nights, 4)

    def test_other_stay_length_is_rejected(self) -> None:
        response = self._book_package(check_out="2025-01-13")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(
            response.data["detail"],
            "This package is valid only for multiples of 2 night(s). You selected 3 night(s).",
        )

    def test_cabin_outside_package_is_rejected(self) -> None:
        self.package.room_types.set([self.forest])

        response = self._book_package()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("is not part of package", response.data["detail"])

    def test_inactive_package_is_rejected(self) -> None:
        self.package.is_active = False
        self.package.save()

        response = self._book_package()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(Reservation.objects.count(), 0)

    def test_package_respects_availability(self) -> None:
        self._book(check_in="2025-01-11", check_out="2025-01-13")

        response = self._book_package()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "unavailable")

    def test_editing_package_booking_keeps_its_price(self) -> None:
        created = self._book_package()
        reservation_id = created.data["reservations"][0]["id"]

        response = self.client.patch(
            reverse("booking-edit", args=[reservation_id]),
            {"check_in": "2025-01-06", "check_out": "2025-01-08"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        reservation = Reservation.objects.get()
        self.assertEqual(reservation.package, self.package)
        self.assertEqual(reservation.room_subtotal, Decimal("450.00"))
        self.assertEqual(reservation.total, Decimal("500.00"))

    def _edit(self, reservation_id, **fields):
        return self.client.patch(reverse("booking-edit", args=[reservation_id]), fields, format="json")

    def _booked_package_id(self):
        created = self._book_package()
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)
        return created.data["reservations"][0]["id"]

    def test_coupon_cannot_be_added_to_package_booking(self) -> None:
        make_coupon("TEN")
        reservation_id = self._booked_package_id()

        response = self._edit(reservation_id, coupon_code="TEN")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["detail"], "Coupons cannot be combined with packages")
        self.assertEqual(Reservation.objects.get().coupon_code, "")

    def test_edited_package_stay_keeps_package_length(self) -> None:
        reservation_id = self._booked_package_id()

        response = self._edit(reservation_id, check_out="2025-01-13")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("multiples of 2 night(s)", response.data["detail"])
        self.assertEqual(Reservation.objects.get().check_out, date(2025, 1, 12))

    def test_moving_package_booking_to_another_cabin_keeps_package_price(self) -> None:
        reservation_id = self._booked_package_id()

        response = self._edit(reservation_id, rooms=["FOREST"])

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        reservation = Reservation.objects.get()
        self.assertEqual(reservation.room_type, self.forest)
        self.assertEqual(reservation.room_subtotal, Decimal("450.00"))
        self.assertEqual(reservation.total, Decimal("500.00"))

    def test_package_booking_cannot_move_outside_package_cabins(self) -> None:
        self.package.room_types.set([self.lake])
        reservation_id = self._booked_package_id()

        response = self._edit(reservation_id, rooms=["FOREST"])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("is not part of package", response.data["detail"])
        self.assertEqual(Reservation.objects.get().room_type, self.lake)

    def test_package_extras_cannot_be_dropped(self) -> None:
        reservation_id = self._booked_package_id()

        response = self._edit(reservation_id, extras={})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["detail"], "Package extras cannot be modified")
        self.assertEqual(Reservation.objects.get().total, Decimal("500.00"))

    def test_unchanged_package_extras_are_accepted(self) -> None:
        reservation_id = self._booked_package_id()

        response = self._edit(reservation_id, extras={str(self.breakfast.pk): 2}, notes="Late arrival")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        reservation = Reservation.objects.get()
        self.assertEqual(reservation.notes, "Late arrival")
        self.assertEqual(reservation.extras_total, Decimal("50.00"))
        self.assertEqual(reservation.total, Decimal("500.00"))

    def test_package_booking_outside_validity_window_is_rejected(self) -> None:
        self.package.valid_from = date(2025, 1, 11)
        self.package.valid_until = date(2025, 1, 20)
        self.package.save()

        too_early = self._book_package()
        too_late = self._book_package(check_in="2025-01-19", check_out="2025-01-21")

        self.assertEqual(too_early.status_code, status.HTTP_400_BAD_REQUEST, too_early.data)
        self.assertEqual(too_early.data["detail"], "Package Package WKND is available for check-in from 2025-01-11")
        self.assertEqual(too_late.status_code, status.HTTP_400_BAD_REQUEST, too_late.data)
        self.assertIn("check-out until 2025-01-20", too_late.data["detail"])
        self.assertEqual(Reservation.objects.count(), 0)

    def test_package_booking_inside_validity_window_is_accepted(self) -> None:
        self.package.valid_from = date(2025, 1, 10)
        self.package.valid_until = date(2025, 1, 12)
        self.package.save()

        response = self._book_package()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    @mock.patch("apps.bookings.views.timezone.localdate", return_value=date(2025, 1, 5))
    def test_calendar_greys_out_days_outside_package_window(self, _localdate) -> None:
        self.package.valid_from = date(2025, 1, 7)
        self.package.valid_until = date(2025, 1, 10)
        self.package.save()
        url = reverse("booking-disabled-check-in-dates")

        response = self.client.get(url, {"days": "6", "package": str(self.package.pk)})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["dates"], ["2025-01-05", "2025-01-06", "2025-01-09", "2025-01-10"])

    def test_calendar_for_unknown_package_is_not_found(self) -> None:
        response = self.client.get(reverse("booking-disabled-check-in-dates"), {"package": "999"})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

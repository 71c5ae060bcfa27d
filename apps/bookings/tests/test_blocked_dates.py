"""Integration tests for blocking and unblocking cabins."""

from __future__ import annotations

from datetime import date

from django.urls import reverse
from rest_framework import status

from apps.bookings.models import BlockedDate

from apps.bookings.tests.test_booking_api import BookingAPITestCase


class BlockedDatesAPITests(BookingAPITestCase):
    def _block(self, **fields):
        payload = {"rooms": ["LAKE"], "start": "2025-01-06", "end": "2025-01-09", "reason": "maintenance"}
        payload.update(fields)
        return self.client.post(reverse("booking-block-dates"), payload, format="json")

    def test_one_row_per_cabin_per_night(self) -> None:
        response = self._block(rooms=["LAKE", str(self.forest.pk)])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["blocked"], 6)
        self.assertEqual(
            sorted(BlockedDate.objects.filter(room_type=self.lake).values_list("blocked_date", flat=True)),
            [date(2025, 1, 6), date(2025, 1, 7), date(2025, 1, 8)],
        )

    def test_reblocking_replaces_existing_rows(self) -> None:
        self._block()

        response = self._block(start="2025-01-07", end="2025-01-09", reason="private_event")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(BlockedDate.objects.count(), 3)
        self.assertEqual(BlockedDate.objects.get(blocked_date=date(2025, 1, 8)).reason, "private_event")
        self.assertEqual(BlockedDate.objects.get(blocked_date=date(2025, 1, 6)).reason, "maintenance")

    def test_blocked_cabin_cannot_be_booked_until_unblocked(self) -> None:
        self._block()
        self.assertEqual(self._book().status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            reverse("booking-unblock-dates"),
            {"rooms": ["LAKE"], "start": "2025-01-06", "end": "2025-01-09"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["unblocked"], 3)
        self.assertEqual(self._book().status_code, status.HTTP_201_CREATED)

    def test_checkout_day_block_does_not_stop_stay(self) -> None:
        self._block(start="2025-01-08", end="2025-01-09")

        self.assertEqual(self._book().status_code, status.HTTP_201_CREATED)

    def test_invalid_requests(self) -> None:
        cases = [
            ({"rooms": []}, "Please select at least one cabin to block."),
            ({"start": None}, "Please select both start and end dates."),
            ({"end": "2025-01-06"}, "End date must be after start date."),
        ]
        for fields, message in cases:
            with self.subTest(fields=fields):
                response = self._block(**fields)
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
                self.assertEqual(response.data["detail"], message)
        self.assertFalse(BlockedDate.objects.exists())

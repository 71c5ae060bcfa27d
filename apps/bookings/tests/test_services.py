from datetime import date
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from apps.bookings.models import BlockedDate, Reservation, WeekendDefinition
from apps.bookings.services import check_availability, disabled_check_in_dates, reporting_weekend_days, unit_ref_for

from apps.bookings.tests.factories import make_package, make_room


class ReportingWeekendTests(TestCase):
    def test_reporting_weekend_comes_from_table(self) -> None:
        WeekendDefinition.objects.create(day_of_week=5, is_weekend=True)
        WeekendDefinition.objects.create(day_of_week=6, is_weekend=True)
        WeekendDefinition.objects.create(day_of_week=4, is_weekend=False)

        self.assertEqual(reporting_weekend_days(), frozenset({5, 6}))


class DisabledCheckInDatesTests(TestCase):
    def setUp(self) -> None:
        self.lake = make_room("LAKE")
        self.forest = make_room("FOREST")

    def _stay(self, room, check_in, check_out, **fields):
        return Reservation.objects.create(
            confirmation_code=f"B{room.code}{check_in:%m%d}",
            room_type=room,
            room_type_code=room.code,
            check_in=check_in,
            check_out=check_out,
            **fields,
        )

    def test_day_is_disabled_only_when_every_cabin_is_taken(self) -> None:
        self._stay(self.lake, date(2025, 1, 6), date(2025, 1, 8))
        BlockedDate.objects.create(room_type=self.forest, blocked_date=date(2025, 1, 7))

        self.assertEqual(disabled_check_in_dates(date(2025, 1, 5), 7), [date(2025, 1, 7)])

    def test_cancelled_stays_and_inactive_cabins_are_ignored(self) -> None:
        self._stay(self.lake, date(2025, 1, 6), date(2025, 1, 8))
        self._stay(self.forest, date(2025, 1, 6), date(2025, 1, 8), status=Reservation.Status.CANCELLED)
        self.assertEqual(disabled_check_in_dates(date(2025, 1, 5), 7), [])

        self.forest.is_active = False
        self.forest.save()

        self.assertEqual(disabled_check_in_dates(date(2025, 1, 5), 7), [date(2025, 1, 6), date(2025, 1, 7)])

    def test_legacy_rows_match_by_code(self) -> None:
        Reservation.objects.create(
            confirmation_code="BLEGACY0001",
            room_type_code="lake",
            check_in=date(2025, 1, 6),
            check_out=date(2025, 1, 7),
        )

        self.assertFalse(check_availability(unit_ref_for(self.lake), "2025-01-06", "2025-01-08"))
        self.assertTrue(check_availability(unit_ref_for(self.forest), "2025-01-06", "2025-01-08"))

    def test_package_needs_a_free_cabin_for_the_whole_stay(self) -> None:
        package = make_package("WKND", "500", nights=2)
        self._stay(self.lake, date(2025, 1, 7), date(2025, 1, 8))
        self._stay(self.forest, date(2025, 1, 8), date(2025, 1, 9))

        disabled = disabled_check_in_dates(date(2025, 1, 5), 7, package=package)

        # two nights from the 7th hit a stay in each cabin; single nights stay open
        self.assertEqual(disabled, [date(2025, 1, 7)])
        self.assertEqual(disabled_check_in_dates(date(2025, 1, 5), 7), [])

    def test_package_only_considers_its_own_cabins(self) -> None:
        package = make_package("LAKEONLY", "300", nights=1, rooms=[self.lake])
        self._stay(self.lake, date(2025, 1, 6), date(2025, 1, 7))

        self.assertEqual(disabled_check_in_dates(date(2025, 1, 5), 3, package=package), [date(2025, 1, 6)])

    def test_days_outside_package_window_are_disabled(self) -> None:
        package = make_package("JAN", "500", nights=2, valid_from=date(2025, 1, 7), valid_until=date(2025, 1, 10))

        disabled = disabled_check_in_dates(date(2025, 1, 5), 6, package=package)

        self.assertEqual(disabled, [date(2025, 1, 5), date(2025, 1, 6), date(2025, 1, 9), date(2025, 1, 10)])

    def test_read_failure_returns_no_dates(self) -> None:
        with mock.patch("apps.bookings.services.RoomType.objects.filter", side_effect=DatabaseError("gone")):
            self.assertEqual(disabled_check_in_dates(date(2025, 1, 5), 7), [])

    def test_availability_fails_closed_on_read_failure(self) -> None:
        with mock.patch("apps.bookings.repositories.Reservation.objects.filter", side_effect=DatabaseError("gone")):
            self.assertFalse(check_availability(unit_ref_for(self.lake), "2025-01-06", "2025-01-08"))

"""API views for the booking engine."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.catalog.repositories import CatalogRepository
from shared.application.message_bus import message_bus

from .domain.assembler import BookingResult
from .exceptions import BookingRejected, ReservationNotFound
from .filters import ReservationFilter
from .models import Reservation
from .serializers import (
    AvailabilityQuerySerializer,
    BlockDatesSerializer,
    BookingCreateSerializer,
    BookingEditSerializer,
    PackageBookingSerializer,
    ReservationSerializer,
    StatusChangeSerializer,
)
from .services import check_availability, disabled_check_in_dates, find_room, unit_ref_for

logger = logging.getLogger(__name__)


class ReservationViewSet(viewsets.ReadOnlyModelViewSet):
    """Admin API over reservations; every write goes through a booking command."""

    queryset = Reservation.objects.select_related("room_type", "package").prefetch_related("extras").all()
    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAdminUser]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReservationFilter

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "edit":
            return BookingEditSerializer
        if self.action == "package":
            return PackageBookingSerializer
        if self.action == "status_change":
            return StatusChangeSerializer
        if self.action in ("block_dates", "unblock_dates"):
            return BlockDatesSerializer
        return ReservationSerializer

    def _booking_response(self, result: BookingResult, success_status: int) -> Response:
        if not result.ok:
            code = status.HTTP_409_CONFLICT if result.write_failed else status.HTTP_400_BAD_REQUEST
            if result.code == ReservationNotFound.code:
                code = status.HTTP_404_NOT_FOUND
            return Response({"detail": result.reason, "code": result.code}, status=code)

        plan = result.plan
        rows = Reservation.objects.filter(pk__in=[draft.reservation_id for draft in plan.drafts]).prefetch_related(
            "extras"
        )
        by_id = {row.pk: row for row in rows}
        ordered = [by_id[draft.reservation_id] for draft in plan.drafts]
        return Response(
            {
                "confirmation_code": plan.leader.confirmation_code,
                "group_reservation_code": plan.group_code or None,
                "currency": plan.currency,
                "room_subtotal": f"{plan.room_subtotal:.2f}",
                "extras_total": f"{plan.extras_total:.2f}",
                "discount_amount": f"{plan.discount:.2f}",
                "total": f"{plan.total.amount:.2f}",
                "reservations": ReservationSerializer(ordered, many=True).data,
            },
            status=success_status,
        )

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = message_bus.handle_command(serializer.to_command())
        return self._booking_response(result, status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"])
    def edit(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = message_bus.handle_command(serializer.to_command(pk))
        return self._booking_response(result, status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="status")
    def status_change(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            rows = message_bus.handle_command(serializer.to_command(pk))
        except ReservationNotFound as e:
            return Response({"detail": e.reason}, status=status.HTTP_404_NOT_FOUND)
        except BookingRejected as e:
            return Response({"detail": e.reason}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ReservationSerializer(rows, many=True).data)

    @action(detail=False, methods=["post"])
    def package(self, request):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = message_bus.handle_command(serializer.to_command())
        return self._booking_response(result, status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def availability(self, request):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        room = find_room(query.validated_data["room"])
        if room is None:
            return Response({"detail": "Unknown cabin"}, status=status.HTTP_404_NOT_FOUND)
        available = check_availability(
            unit_ref_for(room),
            query.validated_data["check_in"],
            query.validated_data["check_out"],
        )
        return Response({"room": room.code, "available": available})

    @action(detail=False, methods=["get"], url_path="disabled-check-in-dates")
    def disabled_check_in_dates(self, request):  # type: ignore
        horizon = request.query_params.get("days")
        days = int(horizon) if horizon and horizon.isdigit() else settings.BOOKING_CHECKIN_HORIZON_DAYS
        package = None
        package_id = request.query_params.get("package")
        if package_id:
            package = CatalogRepository().get_package(package_id) if package_id.isdigit() else None
            if package is None:
                return Response({"detail": "Unknown package"}, status=status.HTTP_404_NOT_FOUND)
        dates = disabled_check_in_dates(timezone.localdate(), days, package=package)
        return Response({"dates": [day.isoformat() for day in dates]})

    @action(detail=False, methods=["post"], url_path="blocked-dates")
    def block_dates(self, request):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            created = message_bus.handle_command(serializer.to_block_command())
        except BookingRejected as e:
            return Response({"detail": e.reason}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"blocked": created}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="blocked-dates/unblock")
    def unblock_dates(self, request):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            deleted = message_bus.handle_command(serializer.to_unblock_command())
        except BookingRejected as e:
            return Response({"detail": e.reason}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"unblocked": deleted})

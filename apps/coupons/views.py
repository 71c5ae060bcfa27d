"""API views for coupons."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.catalog.domain import price_extras
from apps.catalog.repositories import CatalogRepository

from .domain import CouponRejected, resolve_coupon
from .models import Coupon
from .repositories import CouponRepository
from .serializers import CouponPreviewSerializer, CouponSerializer

logger = logging.getLogger(__name__)


class CouponViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Coupon.objects.all()
    serializer_class = CouponSerializer
    permission_classes = [permissions.IsAdminUser]

    @action(detail=False, methods=["post"], serializer_class=CouponPreviewSerializer)
    def preview(self, request):  # type: ignore
        """Validate a code and compute its discount without using it up."""
        serializer = CouponPreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        quantities = {str(key): qty for key, qty in data["extras"].items() if qty > 0}
        try:
            extras = price_extras(quantities, CatalogRepository().extras_by_id(quantities.keys()))
        except KeyError as e:
            return Response({"detail": f"Unknown extra {e.args[0]}"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            applied = resolve_coupon(
                CouponRepository().find_by_code(data["code"]),
                data["room_subtotal"],
                extras,
                timezone.localdate(),
                currency=settings.BOOKING_DEFAULT_CURRENCY,
            )
        except CouponRejected as e:
            logger.info(f"Coupon preview for {data['code']!r} rejected: {e.rejection.value}")
            return Response(
                {"valid": False, "reason": e.rejection.value, "detail": e.message},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {
                "valid": True,
                "code": applied.code,
                "discount_type": applied.coupon.discount_type.value,
                "applies_to": applied.coupon.applies_to.value,
                "base": f"{applied.base:.2f}",
                "discount": f"{applied.discount:.2f}",
            }
        )

"""URL routing for the booking engine."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import ReservationViewSet

router = SimpleRouter()
router.register(r"", ReservationViewSet, basename="booking")

urlpatterns = [
    path("", include(router.urls)),
]

import django_filters

from .models import Reservation


class ReservationFilter(django_filters.FilterSet):
    check_in_from = django_filters.DateFilter(field_name="check_in", lookup_expr="gte")
    check_in_to = django_filters.DateFilter(field_name="check_in", lookup_expr="lte")
    code = django_filters.CharFilter(method="filter_code")

    class Meta:
        model = Reservation
        fields = {
            "status": ["exact"],
            "payment_status": ["exact"],
            "room_type": ["exact"],
            "group_reservation": ["exact"],
            "package": ["exact"],
        }

    def filter_code(self, queryset, name, value):
        # confirmation code of a row or of its whole group
        return queryset.filter(confirmation_code__iexact=value) | queryset.filter(
            group_reservation_code__iexact=value
        )

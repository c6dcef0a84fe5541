import django_filters
from django.db.models import Q

from modules.orders.constants import DeliveryType, OrderChannel, OrderStatus
from modules.orders.models import DeliveryOption, Order
from modules.products.constants import Currency

BOOLEAN_CHOICES = [("true", "true"), ("1", "1"), ("false", "false"), ("0", "0")]


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    channel = django_filters.ChoiceFilter(choices=OrderChannel.choices)
    currency = django_filters.ChoiceFilter(choices=Currency.choices)
    customer = django_filters.UUIDFilter(field_name="customer_id")
    email = django_filters.CharFilter(method="filter_email")
    start_date = django_filters.DateFilter(field_name="placed_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="placed_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total_amount", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total_amount", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "channel",
            "currency",
            "customer",
            "email",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]

    def filter_email(self, queryset, name, value):
        return queryset.filter(
            Q(customer__email__iexact=value)
            | Q(guest_info__email__iexact=value)
        )


class DeliveryOptionFilter(django_filters.FilterSet):
    active = django_filters.ChoiceFilter(choices=BOOLEAN_CHOICES, method="filter_active")
    type = django_filters.ChoiceFilter(choices=DeliveryType.choices)
    provider = django_filters.CharFilter(lookup_expr="iexact")
    country = django_filters.CharFilter(method="filter_country")

    class Meta:
        model = DeliveryOption
        fields = ["active", "type", "provider", "country"]

    def filter_active(self, queryset, name, value):
        return queryset.filter(active=value in ("true", "1"))

    def filter_country(self, queryset, name, value):
        # country lists live in JSON metadata; match in Python for portability
        serving = [option.id for option in queryset if option.serves_country(value)]
        return queryset.filter(id__in=serving)

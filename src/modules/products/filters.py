import django_filters

from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    category = django_filters.CharFilter(
        field_name="category__slug", lookup_expr="iexact"
    )
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    min_price_ngn = django_filters.NumberFilter(
        field_name="price_ngn", lookup_expr="gte"
    )
    max_price_ngn = django_filters.NumberFilter(
        field_name="price_ngn", lookup_expr="lte"
    )
    size_mods = django_filters.BooleanFilter(field_name="size_mods")
    in_stock = django_filters.BooleanFilter(method="filter_in_stock")

    class Meta:
        model = Product
        fields = [
            "name",
            "category",
            "status",
            "min_price_ngn",
            "max_price_ngn",
            "size_mods",
            "in_stock",
        ]

    def filter_in_stock(self, queryset, name, value):
        # advisory only: stock read outside an order transaction may be stale
        if value is None:
            return queryset
        if value:
            return queryset.filter(variants__stock__gt=0).distinct()
        return queryset.exclude(variants__stock__gt=0)

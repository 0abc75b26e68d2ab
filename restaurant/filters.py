import django_filters

from . import lifecycle
from .models import MenuItem, Order, Table


class TableFilter(django_filters.FilterSet):
    """Dashboards poll with ``updated_since`` to pick up changed tables."""
    updated_since = django_filters.IsoDateTimeFilter(field_name='updated_at', lookup_expr='gt')

    class Meta:
        model = Table
        fields = ['status', 'updated_since']


class MenuItemFilter(django_filters.FilterSet):
    class Meta:
        model = MenuItem
        fields = ['category', 'subcategory', 'is_vegetarian', 'is_spicy', 'is_available']


class OrderFilter(django_filters.FilterSet):
    customer_name = django_filters.CharFilter(lookup_expr='iexact')
    active = django_filters.BooleanFilter(method='filter_active')
    updated_since = django_filters.IsoDateTimeFilter(field_name='updated_at', lookup_expr='gt')

    class Meta:
        model = Order
        fields = ['status', 'table', 'customer_name', 'active', 'updated_since']

    def filter_active(self, queryset, name, value):
        if value:
            return queryset.filter(status__in=lifecycle.ACTIVE_STATUSES)
        return queryset.filter(status__in=lifecycle.TERMINAL_STATUSES)

"""
Cart Order Filters
"""
from django_filters import rest_framework as filters

from .models import CartOrder


class AdminOrderFilter(filters.FilterSet):
    """
    ?status= filter of the admin order list.

    `all` (or nothing) lists every order, `payment` lists orders that went
    through payment processing, anything else matches the fulfillment status.
    """
    status = filters.CharFilter(method='filter_status')

    class Meta:
        model = CartOrder
        fields = ['status']

    def filter_status(self, queryset, name, value):
        if not value or value == 'all':
            return queryset
        if value == 'payment':
            return queryset.filter(payment_status__in=[
                CartOrder.PAYMENT_STATUS_PENDING,
                CartOrder.PAYMENT_STATUS_COMPLETED,
                CartOrder.PAYMENT_STATUS_FAILED,
            ])
        return queryset.filter(order_status=value)

"""
Food Subscription Filters
"""
from django_filters import rest_framework as filters

from .models import Subscription


class AdminSubscriptionFilter(filters.FilterSet):
    """?status= filter of the admin subscription list (`all` disables it)"""
    status = filters.CharFilter(method='filter_status')
    auto_renew = filters.BooleanFilter(field_name='auto_renew')
    email = filters.CharFilter(field_name='user_email', lookup_expr='iexact')

    class Meta:
        model = Subscription
        fields = ['status', 'auto_renew', 'email']

    def filter_status(self, queryset, name, value):
        if not value or value == 'all':
            return queryset
        return queryset.filter(status=value)

"""
Django Admin for Food Subscriptions
"""
from django.contrib import admin
from django.utils.html import format_html

from .models import RenewalHistoryEntry, Subscription, SubscriptionLog


class RenewalHistoryInline(admin.TabularInline):
    model = RenewalHistoryEntry
    extra = 0
    can_delete = False
    readonly_fields = ['renewal_date', 'amount', 'status', 'payment_id', 'failure_reason', 'attempt', 'payhere_token']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ['user_email', 'plan_name', 'status', 'amount', 'auto_renew', 'renewal_attempts', 'end_date', 'days_remaining']
    list_filter = ['status', 'auto_renew', 'payment_failure', 'billing_cycle', 'created_at']
    search_fields = ['user_email', 'customer_name', 'payhere_order_id', 'payhere_payment_id']
    readonly_fields = ['payment_type', 'recurring_token', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    inlines = [RenewalHistoryInline]

    fieldsets = (
        ('Customer', {
            'fields': ('user_email', 'customer_name', 'phone_number', 'address')
        }),
        ('Plan', {
            'fields': ('plan_id', 'plan_name', 'payment_type', 'status', 'amount', 'currency', 'billing_cycle')
        }),
        ('PayHere', {
            'fields': ('payment_method', 'payhere_order_id', 'payhere_payment_id', 'recurring_token')
        }),
        ('Auto-renewal', {
            'fields': ('auto_renew', 'renewal_attempts', 'max_renewal_attempts',
                       'auto_renewal_cancelled_date', 'auto_renewal_cancelled_reason')
        }),
        ('Payment Failure', {
            'fields': ('payment_failure', 'payment_failure_reason', 'last_payment_failure_date')
        }),
        ('Billing Period', {
            'fields': ('start_date', 'end_date', 'next_billing_date')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at')
        }),
    )

    def days_remaining(self, obj):
        """Show days until expiry with color coding"""
        days = obj.days_until_expiry()
        if days is None:
            return '-'
        if days <= 0:
            color = 'red'
            text = 'Expired'
        elif days <= 7:
            color = 'orange'
            text = f'{days} days'
        else:
            color = 'green'
            text = f'{days} days'
        return format_html('<span style="color: {};">{}</span>', color, text)
    days_remaining.short_description = 'Days Remaining'


@admin.register(SubscriptionLog)
class SubscriptionLogAdmin(admin.ModelAdmin):
    list_display = ['user_email', 'action', 'subscription', 'timestamp']
    list_filter = ['action', 'timestamp']
    search_fields = ['user_email', 'subscription__id']
    readonly_fields = ['id', 'subscription', 'user_email', 'action', 'details', 'timestamp']
    date_hierarchy = 'timestamp'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

from django.contrib import admin

from .models import PaymentNotification


@admin.register(PaymentNotification)
class PaymentNotificationAdmin(admin.ModelAdmin):
    list_display = ['order_id', 'payment_id', 'status_code', 'payment_type', 'action', 'status', 'created_at']
    list_filter = ['status', 'payment_type', 'action', 'created_at']
    search_fields = ['order_id', 'payment_id']
    readonly_fields = [
        'id', 'order_id', 'payment_id', 'status_code', 'payment_type', 'action',
        'status', 'payload', 'error_message', 'processed_at', 'created_at',
    ]
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

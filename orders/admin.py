"""
Django Admin for Cart Orders
"""
from django.contrib import admin
from django.utils.html import format_html

from .models import CartOrder, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product_id', 'product_name', 'quantity', 'price', 'total_price']
    can_delete = False


@admin.register(CartOrder)
class CartOrderAdmin(admin.ModelAdmin):
    list_display = ['order_id', 'customer_email', 'total_amount', 'currency', 'payment_badge', 'order_status', 'created_at']
    list_filter = ['payment_status', 'order_status', 'created_at']
    search_fields = ['order_id', 'payhere_order_id', 'payhere_payment_id', 'customer_email', 'customer_name']
    readonly_fields = ['payment_type', 'payhere_order_id', 'payhere_payment_id', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    inlines = [OrderItemInline]

    fieldsets = (
        ('Customer', {
            'fields': ('customer_name', 'customer_email', 'phone_number', 'address', 'city')
        }),
        ('Order', {
            'fields': ('order_id', 'payment_type', 'order_status')
        }),
        ('Totals', {
            'fields': ('subtotal', 'tax', 'shipping', 'total_amount', 'currency')
        }),
        ('PayHere', {
            'fields': ('payment_method', 'payment_status', 'payhere_order_id', 'payhere_payment_id')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at')
        }),
    )

    def payment_badge(self, obj):
        """Payment status with color coding"""
        colors = {
            CartOrder.PAYMENT_STATUS_PENDING: 'orange',
            CartOrder.PAYMENT_STATUS_COMPLETED: 'green',
            CartOrder.PAYMENT_STATUS_FAILED: 'red',
            CartOrder.PAYMENT_STATUS_CANCELLED: 'gray',
        }
        return format_html(
            '<span style="color: {};">{}</span>',
            colors.get(obj.payment_status, 'black'),
            obj.get_payment_status_display(),
        )
    payment_badge.short_description = 'Payment'

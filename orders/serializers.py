"""
Cart Order Serializers
Projections of cart orders returned to the storefront and the admin dashboard
"""
from rest_framework import serializers

from .models import CartOrder, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.CharField(source='product_id')
    productName = serializers.CharField(source='product_name')
    totalPrice = serializers.DecimalField(source='total_price', max_digits=12, decimal_places=2)

    class Meta:
        model = OrderItem
        fields = ['productId', 'productName', 'quantity', 'price', 'totalPrice']


class CartOrderStatusSerializer(serializers.ModelSerializer):
    """Order as shown on the payment return page"""
    orderId = serializers.CharField(source='order_id')
    customerName = serializers.CharField(source='customer_name')
    customerEmail = serializers.EmailField(source='customer_email')
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=12, decimal_places=2)
    paymentStatus = serializers.CharField(source='payment_status')
    orderStatus = serializers.CharField(source='order_status')
    createdAt = serializers.DateTimeField(source='created_at')
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = CartOrder
        fields = [
            'id', 'orderId', 'customerName', 'customerEmail', 'totalAmount',
            'currency', 'paymentStatus', 'orderStatus', 'items', 'createdAt',
        ]
        read_only_fields = fields


class UserOrderSerializer(serializers.ModelSerializer):
    """Order history row for a customer"""
    orderId = serializers.CharField(source='order_id')
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=12, decimal_places=2)
    paymentStatus = serializers.CharField(source='payment_status')
    orderStatus = serializers.CharField(source='order_status')
    itemsCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at')
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = CartOrder
        fields = [
            'id', 'orderId', 'totalAmount', 'currency', 'paymentStatus',
            'orderStatus', 'itemsCount', 'createdAt', 'items',
        ]
        read_only_fields = fields

    def get_itemsCount(self, obj):
        return len(obj.items.all())


class AdminOrderSerializer(serializers.ModelSerializer):
    """Full order record for the admin dashboard"""
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = CartOrder
        fields = [
            'id', 'payment_type', 'order_id', 'customer_email', 'customer_name',
            'phone_number', 'address', 'city', 'items', 'subtotal', 'tax',
            'shipping', 'total_amount', 'currency', 'payment_method',
            'payment_status', 'order_status', 'payhere_order_id',
            'payhere_payment_id', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

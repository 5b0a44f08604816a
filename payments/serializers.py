"""
Checkout request serializers
Validate the JSON bodies posted by the storefront before a PayHere checkout is built
"""
from decimal import Decimal

from django.conf import settings
from rest_framework import serializers


class CartItemSerializer(serializers.Serializer):
    productId = serializers.CharField()
    productName = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))


class CartCustomerSerializer(serializers.Serializer):
    firstName = serializers.CharField()
    lastName = serializers.CharField()
    email = serializers.EmailField()
    phone = serializers.CharField(required=False, allow_blank=True, default='')
    address = serializers.CharField()
    city = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_email(self, value):
        return value.strip().lower()


class CartPaymentSerializer(serializers.Serializer):
    """Body of POST /api/create-cart-payment"""
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField(max_length=3, required=False, default='LKR')
    cartItems = CartItemSerializer(many=True, required=False, default=list)
    customerData = CartCustomerSerializer(
        error_messages={'required': 'Customer information is required'},
    )

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Invalid amount')
        return value

    def validate_currency(self, value):
        return value.strip().upper()


class SubscriptionCustomerSerializer(serializers.Serializer):
    name = serializers.CharField()
    email = serializers.EmailField()
    phoneNumber = serializers.CharField(required=False, allow_blank=True, default='')
    address = serializers.CharField()

    def validate_email(self, value):
        return value.strip().lower()


class SubscriptionPaymentSerializer(serializers.Serializer):
    """Body of POST /api/create-food-subscription-payment"""
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField(max_length=3, required=False, default='LKR')
    planId = serializers.CharField(required=False, allow_blank=True)
    enableAutoRenew = serializers.BooleanField(required=False, default=True)
    customerData = SubscriptionCustomerSerializer(
        error_messages={'required': 'Customer name, email, and delivery address are required'},
    )

    def validate_amount(self, value):
        fixed_amount = Decimal(str(settings.SUBSCRIPTION_FIXED_AMOUNT))
        if value != fixed_amount:
            raise serializers.ValidationError(
                f"Invalid amount. Food subscription is fixed at {settings.DEFAULT_CURRENCY} {fixed_amount:.0f} per month"
            )
        return value

    def validate_currency(self, value):
        return value.strip().upper()

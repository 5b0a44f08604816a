"""
Food Subscription Serializers
Request validation for the subscription endpoints and the projections they return
"""
from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from .models import RenewalHistoryEntry, Subscription, SubscriptionLog

RECENT_HISTORY_LENGTH = 5


class RenewalHistoryEntrySerializer(serializers.ModelSerializer):
    renewalDate = serializers.DateTimeField(source='renewal_date')
    paymentId = serializers.CharField(source='payment_id')
    failureReason = serializers.CharField(source='failure_reason')
    payhereToken = serializers.CharField(source='payhere_token')

    class Meta:
        model = RenewalHistoryEntry
        fields = ['renewalDate', 'amount', 'status', 'paymentId', 'failureReason', 'attempt', 'payhereToken']


class SubscriptionStatusSerializer(serializers.ModelSerializer):
    """Subscription as shown on the payment return page"""
    planName = serializers.CharField(source='plan_name')
    autoRenew = serializers.BooleanField(source='auto_renew')
    nextBillingDate = serializers.DateTimeField(source='next_billing_date')
    endDate = serializers.DateTimeField(source='end_date')
    customerName = serializers.CharField(source='customer_name')

    class Meta:
        model = Subscription
        fields = [
            'id', 'planName', 'status', 'amount', 'currency', 'autoRenew',
            'nextBillingDate', 'endDate', 'customerName', 'address',
        ]
        read_only_fields = fields


class SubscriptionRecordSerializer(serializers.ModelSerializer):
    """Short summary returned when a subscription record is created"""
    planName = serializers.CharField(source='plan_name')
    nextBillingDate = serializers.DateTimeField(source='next_billing_date')
    autoRenew = serializers.BooleanField(source='auto_renew')

    class Meta:
        model = Subscription
        fields = ['id', 'planName', 'amount', 'currency', 'nextBillingDate', 'autoRenew']
        read_only_fields = fields


class UserSubscriptionSerializer(SubscriptionStatusSerializer):
    """Subscription overview for a customer with the latest billing attempts"""
    startDate = serializers.DateTimeField(source='start_date')
    paymentFailure = serializers.BooleanField(source='payment_failure')
    renewalAttempts = serializers.IntegerField(source='renewal_attempts')
    maxRenewalAttempts = serializers.IntegerField(source='max_renewal_attempts')
    renewalHistory = serializers.SerializerMethodField()

    class Meta(SubscriptionStatusSerializer.Meta):
        fields = SubscriptionStatusSerializer.Meta.fields + [
            'startDate', 'paymentFailure', 'renewalAttempts', 'maxRenewalAttempts', 'renewalHistory',
        ]
        read_only_fields = fields

    def get_renewalHistory(self, obj):
        entries = list(obj.renewal_history.all())[-RECENT_HISTORY_LENGTH:]
        return RenewalHistoryEntrySerializer(entries, many=True).data


class AdminSubscriptionSerializer(serializers.ModelSerializer):
    """Full subscription record for the admin dashboard"""
    daysUntilExpiry = serializers.SerializerMethodField()

    class Meta:
        model = Subscription
        fields = [
            'id', 'payment_type', 'user_email', 'customer_name', 'phone_number',
            'address', 'plan_id', 'plan_name', 'status', 'amount', 'currency',
            'billing_cycle', 'payment_method', 'payhere_order_id',
            'payhere_payment_id', 'auto_renew', 'renewal_attempts',
            'max_renewal_attempts', 'payment_failure', 'payment_failure_reason',
            'last_payment_failure_date', 'auto_renewal_cancelled_date',
            'auto_renewal_cancelled_reason', 'start_date', 'end_date',
            'next_billing_date', 'created_at', 'updated_at', 'daysUntilExpiry',
        ]
        read_only_fields = fields

    def get_daysUntilExpiry(self, obj):
        return obj.days_until_expiry()


class SubscriptionLogSerializer(serializers.ModelSerializer):
    subscriptionId = serializers.UUIDField(source='subscription_id')
    userEmail = serializers.EmailField(source='user_email')

    class Meta:
        model = SubscriptionLog
        fields = ['id', 'subscriptionId', 'userEmail', 'action', 'details', 'timestamp']
        read_only_fields = fields


class SubscriptionRecordRequestSerializer(serializers.Serializer):
    """Body of POST /api/create-food-subscription-record"""
    userEmail = serializers.EmailField(error_messages={'required': 'User email, customer name, and address are required'})
    customerName = serializers.CharField(error_messages={'required': 'User email, customer name, and address are required'})
    address = serializers.CharField(error_messages={'required': 'User email, customer name, and address are required'})
    phoneNumber = serializers.CharField(required=False, allow_blank=True, default='')
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=Decimal('0.00'))
    currency = serializers.CharField(max_length=3, required=False)
    paymentMethod = serializers.CharField(required=False, default='payhere')
    payhereOrderId = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    payhereRecurringToken = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    enableAutoRenew = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs):
        attrs.setdefault('amount', Decimal(str(settings.SUBSCRIPTION_FIXED_AMOUNT)))
        attrs['currency'] = (attrs.get('currency') or settings.DEFAULT_CURRENCY).upper()
        return attrs


class SubscriptionLookupSerializer(serializers.Serializer):
    """Identify a subscription by id or by customer email"""
    subscriptionId = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get('subscriptionId') and not attrs.get('email'):
            raise serializers.ValidationError('Email or subscription ID is required')
        return attrs


class AutoRenewalRequestSerializer(serializers.Serializer):
    """Body of the cancel / reactivate auto-renewal endpoints"""
    subscriptionId = serializers.CharField(required=False, allow_blank=True)
    userEmail = serializers.EmailField(required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs):
        if not attrs.get('subscriptionId') and not attrs.get('userEmail'):
            raise serializers.ValidationError('Subscription ID or email is required')
        return attrs

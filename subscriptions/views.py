"""
Food Subscription Views
Subscription records, status lookups, auto-renewal management and admin listings
"""
import uuid

from django.db.models import Q
from rest_framework import generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from payments.pagination import AdminPagination
from payments.utils import error_response, first_error_message

from .auto_renewal import AutoRenewalResult, cancel_auto_renew, reactivate_auto_renew
from .filters import AdminSubscriptionFilter
from .models import Subscription, SubscriptionLog
from .renewals import create_subscription_record
from .serializers import (
    AdminSubscriptionSerializer,
    AutoRenewalRequestSerializer,
    SubscriptionLogSerializer,
    SubscriptionLookupSerializer,
    SubscriptionRecordRequestSerializer,
    SubscriptionRecordSerializer,
    SubscriptionStatusSerializer,
    UserSubscriptionSerializer,
)

DEFAULT_LOG_LIMIT = 20


def _parse_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


@api_view(['POST'])
@permission_classes([AllowAny])
def create_food_subscription_record(request):
    """
    Record a food subscription after checkout.

    Posting the same PayHere order id twice returns the existing record.
    """
    serializer = SubscriptionRecordRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(first_error_message(serializer.errors), key='message')

    data = serializer.validated_data
    subscription, created = create_subscription_record(
        user_email=data['userEmail'],
        customer_name=data['customerName'],
        address=data['address'],
        payhere_order_id=data.get('payhereOrderId'),
        phone_number=data.get('phoneNumber'),
        amount=data['amount'],
        currency=data['currency'],
        payment_method=data['paymentMethod'],
        recurring_token=data.get('payhereRecurringToken'),
        enable_auto_renew=data['enableAutoRenew'],
    )

    return Response({
        'success': True,
        'subscriptionId': subscription.id,
        'message': 'Food subscription record created successfully' if created else 'Subscription record already exists',
        'subscription': SubscriptionRecordSerializer(subscription).data,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def food_subscription_status(request, order_id):
    """Subscription for a gateway order id, or `pending` while it has not materialised"""
    subscription = Subscription.objects.filter(payhere_order_id=order_id).first()

    if subscription is None:
        return Response({
            'success': True,
            'status': 'pending',
            'message': 'Payment is being processed',
        })

    return Response({
        'success': True,
        'status': 'completed',
        'subscription': SubscriptionStatusSerializer(subscription).data,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def user_food_subscriptions(request, email):
    """All subscriptions of a customer, newest first, with their latest billing attempts"""
    subscriptions = Subscription.objects.filter(
        user_email=email.strip().lower()
    ).prefetch_related('renewal_history').order_by('-created_at')

    return Response({
        'success': True,
        'subscriptions': UserSubscriptionSerializer(subscriptions, many=True).data,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def check_food_subscription(request):
    """Whether a customer (or subscription id) has a subscription, and whether it is currently active"""
    serializer = SubscriptionLookupSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(first_error_message(serializer.errors), key='message')

    email = serializer.validated_data.get('email')
    subscription_id = _parse_uuid(serializer.validated_data.get('subscriptionId'))

    lookup = Q()
    if email:
        lookup |= Q(user_email=email.strip().lower())
    if subscription_id:
        lookup |= Q(pk=subscription_id)

    subscription = None
    if lookup:
        subscription = Subscription.objects.filter(lookup).order_by('-created_at').first()

    if subscription is None:
        return Response({
            'success': True,
            'hasSubscription': False,
            'hasActiveSubscription': False,
            'subscription': None,
        })

    return Response({
        'success': True,
        'hasSubscription': True,
        'hasActiveSubscription': subscription.is_active(),
        'subscription': UserSubscriptionSerializer(subscription).data,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def cancel_food_subscription_renewal(request):
    """Turn off auto-renewal; the subscription stays usable until its end date"""
    serializer = AutoRenewalRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(first_error_message(serializer.errors), key='message')

    data = serializer.validated_data
    result = cancel_auto_renew(
        subscription_id=data.get('subscriptionId'),
        email=data.get('userEmail'),
        reason=data.get('reason'),
    )

    body = {'success': result.success, 'message': result.message}
    if result.outcome in (AutoRenewalResult.OUTCOME_CANCELLED, AutoRenewalResult.OUTCOME_ALREADY_DISABLED):
        body['autoRenew'] = False
    if result.gateway_status:
        body['payhereStatus'] = result.gateway_status
    return Response(body)


@api_view(['POST'])
@permission_classes([AllowAny])
def reactivate_food_subscription_renewal(request):
    """Turn auto-renewal back on for a subscription that has not expired"""
    serializer = AutoRenewalRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(first_error_message(serializer.errors), key='message')

    data = serializer.validated_data
    result = reactivate_auto_renew(
        subscription_id=data.get('subscriptionId'),
        email=data.get('userEmail'),
    )

    body = {'success': result.success, 'message': result.message}
    if result.outcome == AutoRenewalResult.OUTCOME_REACTIVATED:
        subscription = result.subscription
        body['subscription'] = {
            'id': subscription.id,
            'status': subscription.status,
            'autoRenew': subscription.auto_renew,
            'nextBillingDate': subscription.next_billing_date,
        }
    return Response(body)


class AdminSubscriptionListView(generics.ListAPIView):
    """All food subscriptions with headline counts"""
    serializer_class = AdminSubscriptionSerializer
    pagination_class = AdminPagination
    permission_classes = [AllowAny]
    filter_backends = [DjangoFilterBackend]
    filterset_class = AdminSubscriptionFilter

    def get_queryset(self):
        return Subscription.objects.order_by('-created_at')

    def get_stats(self):
        subscriptions = Subscription.objects.all()
        return {
            'totalSubscriptions': subscriptions.count(),
            'activeSubscriptions': subscriptions.filter(status=Subscription.STATUS_ACTIVE).count(),
            'autoRenewEnabled': subscriptions.filter(auto_renew=True).count(),
            'pendingRenewal': subscriptions.filter(status=Subscription.STATUS_PENDING_RENEWAL).count(),
            'cancelledSubscriptions': subscriptions.filter(status=Subscription.STATUS_CANCELLED).count(),
            'failedPayments': subscriptions.filter(payment_failure=True).count(),
        }

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.paginator.get_paginated_response(serializer.data, key='subscriptions', stats=self.get_stats())


@api_view(['GET'])
@permission_classes([AllowAny])
def food_subscription_logs(request, subscription_id):
    """Most recent audit log entries of one subscription"""
    try:
        limit = max(int(request.query_params.get('limit', DEFAULT_LOG_LIMIT)), 1)
    except ValueError:
        return error_response('limit must be a positive integer', key='message')

    logs = SubscriptionLog.objects.filter(subscription_id=subscription_id).order_by('-timestamp')[:limit]
    return Response({
        'success': True,
        'logs': SubscriptionLogSerializer(logs, many=True).data,
    })

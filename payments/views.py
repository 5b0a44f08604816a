"""
Payment Views
PayHere notification endpoint and checkout initiation
"""
from django.conf import settings
from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.services import create_cart_order

from .config import PayHereConfig
from .exceptions import AuthenticityError, PaymentGatewayError
from .notifications import NotificationRouter
from .payment_gateways import get_payment_gateway
from .serializers import CartPaymentSerializer, SubscriptionPaymentSerializer
from .utils import (
    SUBSCRIPTION_ORDER_PREFIX,
    build_items_description,
    error_response,
    first_error_message,
    generate_order_id,
    normalize_phone,
    split_name,
)

import logging
logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name='dispatch')
class PayHereNotifyView(APIView):
    """
    Server-to-server payment notification from PayHere.

    Answers in plain text: 400 with a short reason when the notification
    cannot be authenticated, 200 "OK" for everything else.
    """
    permission_classes = [AllowAny]
    parser_classes = [FormParser, MultiPartParser, JSONParser]

    def post(self, request):
        router = NotificationRouter(PayHereConfig.from_settings())

        try:
            outcome = router.handle(request.data)
        except AuthenticityError as e:
            return HttpResponse(e.reason, status=status.HTTP_400_BAD_REQUEST, content_type='text/plain')
        except Exception:
            logger.exception("Unexpected error while receiving PayHere notification")
            return HttpResponse('Server error', status=status.HTTP_500_INTERNAL_SERVER_ERROR, content_type='text/plain')

        logger.info(f"PayHere notification {outcome.record.id} acknowledged ({outcome.status})")
        return HttpResponse('OK', content_type='text/plain')


def _gateway_or_error():
    try:
        return get_payment_gateway(), None
    except PaymentGatewayError as e:
        logger.error(str(e))
        return None, error_response('PayHere configuration invalid', status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
@permission_classes([AllowAny])
def create_cart_payment(request):
    """
    Create a pending cart order and return the signed one-time checkout payload.
    """
    gateway, failure = _gateway_or_error()
    if failure:
        return failure

    serializer = CartPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(first_error_message(serializer.errors))

    data = serializer.validated_data
    customer_data = data['customerData']
    cart_items = data['cartItems']

    customer = {
        'email': customer_data['email'],
        'name': f"{customer_data['firstName']} {customer_data['lastName']}".strip(),
        'phone': normalize_phone(customer_data.get('phone')),
        'address': customer_data['address'].strip(),
        'city': customer_data.get('city') or gateway.DEFAULT_CITY,
    }
    order = create_cart_order(customer, cart_items, data['amount'], data['currency'])

    payment_data = gateway.build_cart_checkout(
        order,
        first_name=customer_data['firstName'],
        last_name=customer_data['lastName'],
        items_description=build_items_description(cart_items),
    )

    return Response({
        'success': True,
        'orderId': order.payhere_order_id,
        'paymentData': payment_data,
        'amount': order.total_amount,
        'currency': order.currency,
        'message': 'One-time cart payment created successfully',
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def create_food_subscription_payment(request):
    """
    Return the signed recurring checkout payload for the monthly food plan.

    Nothing is persisted here; the subscription appears once PayHere notifies
    the initial payment or the storefront posts the subscription record.
    """
    gateway, failure = _gateway_or_error()
    if failure:
        return failure

    serializer = SubscriptionPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(first_error_message(serializer.errors))

    data = serializer.validated_data
    customer_data = data['customerData']
    first_name, last_name = split_name(customer_data['name'])
    order_id = generate_order_id(SUBSCRIPTION_ORDER_PREFIX)
    amount = data['amount']

    payment_data = gateway.build_subscription_checkout(
        order_id,
        amount,
        data['currency'],
        plan_id=data.get('planId') or settings.SUBSCRIPTION_PLAN_ID,
        plan_name=settings.SUBSCRIPTION_PLAN_NAME,
        customer={
            'first_name': first_name,
            'last_name': last_name,
            'email': customer_data['email'],
            'phone': normalize_phone(customer_data.get('phoneNumber')),
            'address': customer_data['address'].strip(),
        },
    )
    logger.info(f"Recurring food subscription checkout prepared: {order_id} amount={amount}")

    return Response({
        'success': True,
        'orderId': order_id,
        'paymentData': payment_data,
        'amount': amount,
        'currency': data['currency'],
        'recurring': True,
        'message': 'Food subscription recurring payment created successfully',
    })

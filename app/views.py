from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
import django
import rest_framework

from payments.config import PayHereConfig


@api_view(['GET'])
@permission_classes([AllowAny])
def landing_page(request):
    """Service banner with the available API routes"""
    return Response({
        'message': 'PayHere commerce backend is running',
        'django_version': django.get_version(),
        'drf_version': rest_framework.__version__,
        'features': [
            'Cart Payments (One-time)',
            'Food Subscriptions (Recurring)',
            'Unified Notifications',
            'Admin Dashboard',
        ],
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    """Liveness check exposing the gateway mode (never the secret itself)"""
    config = PayHereConfig.from_settings()
    return Response({
        'success': True,
        'message': 'Unified PayHere API is running',
        'timestamp': timezone.now().isoformat(),
        'config': {
            'mode': config.mode,
            'merchantId': config.merchant_id,
            'hasSecret': bool(config.merchant_secret),
            'issues': config.validate(),
        },
        'features': {
            'cartPayments': True,
            'foodSubscriptions': True,
            'notifications': True,
            'adminDashboard': True,
        },
    })

"""
Cart Order Views
Order status lookups for the storefront and the admin order list
"""
from rest_framework import generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from payments.pagination import AdminPagination, PageLimitPagination

from .filters import AdminOrderFilter
from .models import CartOrder
from .serializers import AdminOrderSerializer, CartOrderStatusSerializer, UserOrderSerializer


@api_view(['GET'])
@permission_classes([AllowAny])
def cart_order_status(request, order_id):
    """Order for a gateway order id, or `pending` while it has not materialised"""
    order = CartOrder.objects.prefetch_related('items').filter(payhere_order_id=order_id).first()

    if order is None:
        return Response({
            'success': True,
            'status': 'pending',
            'message': 'Payment is being processed',
        })

    return Response({
        'success': True,
        'status': 'completed',
        'order': CartOrderStatusSerializer(order).data,
    })


class UserOrderListView(generics.ListAPIView):
    """Paginated order history of one customer, newest first"""
    serializer_class = UserOrderSerializer
    pagination_class = PageLimitPagination
    permission_classes = [AllowAny]
    filter_backends = []

    def get_queryset(self):
        email = self.kwargs['email'].strip().lower()
        return CartOrder.objects.filter(customer_email=email).prefetch_related('items').order_by('-created_at')

    def list(self, request, *args, **kwargs):
        page = self.paginate_queryset(self.get_queryset())
        serializer = self.get_serializer(page, many=True)
        return self.paginator.get_paginated_response(serializer.data, key='orders')


class AdminOrderListView(generics.ListAPIView):
    """All cart orders with headline payment / fulfillment counts"""
    serializer_class = AdminOrderSerializer
    pagination_class = AdminPagination
    permission_classes = [AllowAny]
    filter_backends = [DjangoFilterBackend]
    filterset_class = AdminOrderFilter

    def get_queryset(self):
        return CartOrder.objects.prefetch_related('items').order_by('-created_at')

    def get_stats(self):
        orders = CartOrder.objects.all()
        return {
            'totalOrders': orders.count(),
            'pendingPayments': orders.filter(payment_status=CartOrder.PAYMENT_STATUS_PENDING).count(),
            'completedPayments': orders.filter(payment_status=CartOrder.PAYMENT_STATUS_COMPLETED).count(),
            'failedPayments': orders.filter(payment_status=CartOrder.PAYMENT_STATUS_FAILED).count(),
            'confirmedOrders': orders.filter(order_status=CartOrder.ORDER_STATUS_CONFIRMED).count(),
            'cancelledOrders': orders.filter(order_status=CartOrder.ORDER_STATUS_CANCELLED).count(),
        }

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.paginator.get_paginated_response(serializer.data, key='orders', stats=self.get_stats())

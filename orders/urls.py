from django.urls import path

from .views import AdminOrderListView, UserOrderListView, cart_order_status

urlpatterns = [
    path('api/cart-order-status/<str:order_id>', cart_order_status, name='cart-order-status'),
    path('api/user-orders/<str:email>', UserOrderListView.as_view(), name='user-orders'),
    path('api/admin/orders', AdminOrderListView.as_view(), name='admin-orders'),
]

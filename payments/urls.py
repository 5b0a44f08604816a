from django.urls import path

from .views import PayHereNotifyView, create_cart_payment, create_food_subscription_payment

urlpatterns = [
    path('api/payhere-notify', PayHereNotifyView.as_view(), name='payhere-notify'),
    path('api/create-cart-payment', create_cart_payment, name='create-cart-payment'),
    path('api/create-food-subscription-payment', create_food_subscription_payment, name='create-food-subscription-payment'),
]

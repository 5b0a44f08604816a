from django.urls import path

from .views import (
    AdminSubscriptionListView,
    cancel_food_subscription_renewal,
    check_food_subscription,
    create_food_subscription_record,
    food_subscription_logs,
    food_subscription_status,
    reactivate_food_subscription_renewal,
    user_food_subscriptions,
)

urlpatterns = [
    path('api/create-food-subscription-record', create_food_subscription_record, name='create-food-subscription-record'),
    path('api/food-subscription-status/<str:order_id>', food_subscription_status, name='food-subscription-status'),
    path('api/user-food-subscriptions/<str:email>', user_food_subscriptions, name='user-food-subscriptions'),
    path('api/check-food-subscription', check_food_subscription, name='check-food-subscription'),
    path('api/cancel-food-subscription-renewal', cancel_food_subscription_renewal, name='cancel-food-subscription-renewal'),
    path('api/reactivate-food-subscription-renewal', reactivate_food_subscription_renewal, name='reactivate-food-subscription-renewal'),
    # Admin dashboard
    path('api/admin/food-subscriptions', AdminSubscriptionListView.as_view(), name='admin-food-subscriptions'),
    path('api/admin/food-subscription-logs/<uuid:subscription_id>', food_subscription_logs, name='admin-food-subscription-logs'),
]

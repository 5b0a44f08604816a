"""
URL configuration for the PayHere commerce backend.
"""
from django.contrib import admin
from django.urls import path, include
from .views import landing_page, health

urlpatterns = [
    path('', landing_page, name='landing'),
    path('api/health', health, name='health'),
    path('admin/', admin.site.urls),
    path('', include('payments.urls')),
    path('', include('orders.urls')),
    path('', include('subscriptions.urls')),
]

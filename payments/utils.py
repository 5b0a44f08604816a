"""
Helpers shared by the checkout and query endpoints
"""
import random
import re
import time

from rest_framework import status
from rest_framework.response import Response

DEFAULT_PHONE = '0771234567'
ITEMS_DESCRIPTION_MAX_LENGTH = 100

CART_ORDER_PREFIX = 'CART'
SUBSCRIPTION_ORDER_PREFIX = 'FOOD_RECURRING'


def generate_order_id(prefix):
    """Gateway order id: <PREFIX>_<epoch millis>_<0-999>"""
    timestamp = int(time.time() * 1000)
    return f"{prefix}_{timestamp}_{random.randint(0, 999)}"


def normalize_phone(phone):
    """
    Normalise a Sri Lankan phone number to the local 0XXXXXXXXX form.

    Strips non-digits, rewrites a leading 94 country code and falls back to a
    placeholder when nothing usable is supplied.
    """
    raw = (phone or '').strip() or DEFAULT_PHONE
    digits = re.sub(r'\D', '', raw)
    if not digits:
        return DEFAULT_PHONE
    if digits.startswith('94'):
        return '0' + digits[2:]
    if not digits.startswith('0'):
        return '0' + digits
    return digits


def build_items_description(cart_items):
    if not cart_items:
        return 'Cart Items'

    description = ', '.join(
        f"{item.get('productName') or item.get('product_name')} (x{item.get('quantity')})"
        for item in cart_items
    )
    if len(description) > ITEMS_DESCRIPTION_MAX_LENGTH:
        description = description[:ITEMS_DESCRIPTION_MAX_LENGTH - 3] + '...'
    return description


def split_name(full_name):
    """Split a full name into first / last parts with gateway-friendly defaults"""
    parts = (full_name or '').split()
    first_name = parts[0] if parts else 'Customer'
    last_name = ' '.join(parts[1:]) or 'User'
    return first_name, last_name


def first_error_message(errors):
    """Flatten DRF validation errors to the first human readable message"""
    if isinstance(errors, dict):
        for value in errors.values():
            return first_error_message(value)
    if isinstance(errors, (list, tuple)):
        for value in errors:
            return first_error_message(value)
    return str(errors) if errors else 'Invalid request'


def error_response(message, status_code=status.HTTP_400_BAD_REQUEST, key='error'):
    return Response({'success': False, key: message}, status=status_code)

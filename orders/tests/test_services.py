"""
Tests for cart order persistence and the notification-driven order update
"""
from decimal import Decimal

from django.test import TestCase

from orders.models import CartOrder
from orders.services import apply_order_notification, create_cart_order
from payments.exceptions import NotFoundError


def make_order(**overrides):
    customer = {
        'email': 'nimal@example.com',
        'name': 'Nimal Perera',
        'phone': '0771234567',
        'address': '12 Galle Road',
        'city': '',
    }
    customer.update(overrides)
    cart_items = [
        {'productId': 'p-1', 'productName': 'Rice Pack', 'quantity': 3, 'price': Decimal('250.00')},
    ]
    return create_cart_order(customer, cart_items, Decimal('750.00'), 'lkr')


class CreateCartOrderTestCase(TestCase):

    def test_order_is_pending_with_items(self):
        order = make_order()

        self.assertEqual(order.order_id, order.payhere_order_id)
        self.assertTrue(order.payhere_order_id.startswith('CART_'))
        self.assertEqual(order.payment_status, CartOrder.PAYMENT_STATUS_PENDING)
        self.assertEqual(order.order_status, CartOrder.ORDER_STATUS_PENDING)
        self.assertEqual(order.currency, 'LKR')
        self.assertEqual(order.city, 'Colombo')
        self.assertEqual(order.subtotal, Decimal('750.00'))
        self.assertEqual(order.total_amount, Decimal('750.00'))
        self.assertIsNone(order.payhere_payment_id)

        item = order.items.get()
        self.assertEqual(item.product_name, 'Rice Pack')
        self.assertEqual(item.total_price, Decimal('750.00'))


class ApplyOrderNotificationTestCase(TestCase):

    def setUp(self):
        self.order = make_order()

    def notification(self, **extra):
        data = {'order_id': self.order.payhere_order_id, 'payment_id': '320025071278'}
        data.update(extra)
        return data

    def test_success_completes_and_confirms(self):
        apply_order_notification(self.notification(), success=True)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, CartOrder.PAYMENT_STATUS_COMPLETED)
        self.assertEqual(self.order.order_status, CartOrder.ORDER_STATUS_CONFIRMED)
        self.assertEqual(self.order.payhere_payment_id, '320025071278')

    def test_failure_fails_and_cancels(self):
        apply_order_notification(self.notification(status_message='Card declined'), success=False)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, CartOrder.PAYMENT_STATUS_FAILED)
        self.assertEqual(self.order.order_status, CartOrder.ORDER_STATUS_CANCELLED)
        self.assertIsNone(self.order.payhere_payment_id)

    def test_repeated_success_is_stable(self):
        apply_order_notification(self.notification(), success=True)
        apply_order_notification(self.notification(), success=True)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, CartOrder.PAYMENT_STATUS_COMPLETED)
        self.assertEqual(CartOrder.objects.count(), 1)

    def test_unknown_order_is_never_created(self):
        with self.assertRaises(NotFoundError):
            apply_order_notification({'order_id': 'CART_0_0', 'payment_id': '1'}, success=True)

        self.assertFalse(CartOrder.objects.filter(payhere_order_id='CART_0_0').exists())

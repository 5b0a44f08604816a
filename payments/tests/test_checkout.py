"""
Tests for checkout initiation endpoints
"""
from decimal import Decimal

from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from orders.models import CartOrder
from payments.hashing import generate_checkout_hash
from payments.models import PaymentType
from payments.tests.helpers import MERCHANT_ID, MERCHANT_SECRET, payhere_settings
from subscriptions.models import Subscription


@payhere_settings
class CreateCartPaymentTestCase(APITestCase):
    url = '/api/create-cart-payment'

    def setUp(self):
        self.payload = {
            'amount': '1500.00',
            'currency': 'lkr',
            'cartItems': [
                {'productId': 'p-1', 'productName': 'Rice Pack', 'quantity': 2, 'price': '500.00'},
                {'productId': 'p-2', 'productName': 'Dhal', 'quantity': 1, 'price': '500.00'},
            ],
            'customerData': {
                'firstName': 'Nimal',
                'lastName': 'Perera',
                'email': ' Nimal@Example.com ',
                'phone': '+94 77 123 4567',
                'address': '12 Galle Road ',
            },
        }

    def test_creates_pending_order_and_signed_payload(self):
        response = self.client.post(self.url, self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        order_id = response.data['orderId']
        self.assertRegex(order_id, r'^CART_\d+_\d{1,3}$')

        order = CartOrder.objects.get(payhere_order_id=order_id)
        self.assertEqual(order.payment_type, PaymentType.CART)
        self.assertEqual(order.payment_status, CartOrder.PAYMENT_STATUS_PENDING)
        self.assertEqual(order.order_status, CartOrder.ORDER_STATUS_PENDING)
        self.assertEqual(order.customer_email, 'nimal@example.com')
        self.assertEqual(order.customer_name, 'Nimal Perera')
        self.assertEqual(order.phone_number, '0771234567')
        self.assertEqual(order.city, 'Colombo')
        self.assertEqual(order.total_amount, Decimal('1500.00'))
        self.assertEqual(order.currency, 'LKR')
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(order.items.get(product_id='p-1').total_price, Decimal('1000.00'))

        payment_data = response.data['paymentData']
        self.assertEqual(payment_data['merchant_id'], MERCHANT_ID)
        self.assertEqual(payment_data['amount'], '1500.00')
        self.assertEqual(payment_data['currency'], 'LKR')
        self.assertEqual(payment_data['items'], 'Rice Pack (x2), Dhal (x1)')
        self.assertEqual(payment_data['custom_1'], 'cart_order')
        self.assertEqual(payment_data['custom_2'], 'customer_nimal@example.com')
        self.assertEqual(payment_data['return_url'], f'http://shop.test/payment/status?order_id={order_id}')
        self.assertTrue(payment_data['sandbox'])
        self.assertEqual(
            payment_data['hash'],
            generate_checkout_hash(MERCHANT_ID, order_id, '1500.00', 'LKR', MERCHANT_SECRET),
        )

    def test_long_item_list_is_truncated(self):
        self.payload['cartItems'] = [
            {'productId': f'p-{i}', 'productName': f'Organic Vegetable Box {i}', 'quantity': 1, 'price': '100.00'}
            for i in range(10)
        ]

        response = self.client.post(self.url, self.payload, format='json')

        items = response.data['paymentData']['items']
        self.assertEqual(len(items), 100)
        self.assertTrue(items.endswith('...'))

    def test_invalid_amount(self):
        self.payload['amount'] = '0'

        response = self.client.post(self.url, self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'success': False, 'error': 'Invalid amount'})
        self.assertFalse(CartOrder.objects.exists())

    def test_missing_customer(self):
        del self.payload['customerData']

        response = self.client.post(self.url, self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Customer information is required')

    @override_settings(PAYHERE_MERCHANT_SECRET='')
    def test_missing_configuration(self):
        response = self.client.post(self.url, self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'PayHere configuration invalid')
        self.assertFalse(CartOrder.objects.exists())


@payhere_settings
class CreateFoodSubscriptionPaymentTestCase(APITestCase):
    url = '/api/create-food-subscription-payment'

    def setUp(self):
        self.payload = {
            'amount': 2500,
            'planId': 'food_premium',
            'customerData': {
                'name': 'Kamala Sunethra Silva',
                'email': 'kamala@example.com',
                'phoneNumber': '771234567',
                'address': 'Kandy Road, Kadawatha',
            },
        }

    def test_returns_recurring_payload_without_persisting(self):
        response = self.client.post(self.url, self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['recurring'])
        order_id = response.data['orderId']
        self.assertTrue(order_id.startswith('FOOD_RECURRING_'))

        payment_data = response.data['paymentData']
        self.assertEqual(payment_data['recurrence'], '1 Month')
        self.assertEqual(payment_data['duration'], 'Forever')
        self.assertEqual(payment_data['startup_fee'], '0.00')
        self.assertEqual(payment_data['amount'], '2500.00')
        self.assertEqual(payment_data['custom_1'], 'plan_food_premium')
        self.assertEqual(payment_data['custom_2'], 'food_monthly_recurring')
        self.assertEqual(payment_data['first_name'], 'Kamala')
        self.assertEqual(payment_data['last_name'], 'Sunethra Silva')
        self.assertEqual(payment_data['phone'], '0771234567')
        self.assertEqual(
            payment_data['hash'],
            generate_checkout_hash(MERCHANT_ID, order_id, '2500', 'LKR', MERCHANT_SECRET),
        )
        self.assertFalse(Subscription.objects.exists())

    def test_amount_must_match_plan_price(self):
        self.payload['amount'] = 1000

        response = self.client.post(self.url, self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('fixed at', response.data['error'])

    def test_customer_details_required(self):
        self.payload['customerData'] = {'name': 'Kamala'}

        response = self.client.post(self.url, self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

"""
Builders for signed PayHere notifications used across the test suites
"""
from django.test import override_settings

from payments.hashing import generate_notification_hash

MERCHANT_ID = '1211149'
MERCHANT_SECRET = 'test-merchant-secret'

payhere_settings = override_settings(
    PAYHERE_MERCHANT_ID=MERCHANT_ID,
    PAYHERE_MERCHANT_SECRET=MERCHANT_SECRET,
    PAYHERE_MODE='sandbox',
    PAYHERE_RETURN_URL='http://shop.test/payment/status',
    PAYHERE_CANCEL_URL='http://shop.test/payment/cancelled',
    PAYHERE_NOTIFY_URL='http://api.shop.test/api/payhere-notify',
)


def signed_notification(order_id, status_code='2', amount='1500.00', currency='LKR',
                        payment_id='320025071278', secret=MERCHANT_SECRET, **extra):
    """Notification body as PayHere posts it, signed with the test merchant secret"""
    notification = {
        'merchant_id': MERCHANT_ID,
        'order_id': order_id,
        'payment_id': payment_id,
        'payhere_amount': amount,
        'payhere_currency': currency,
        'status_code': status_code,
        'status_message': 'Successfully completed the payment.' if status_code == '2' else 'Payment declined',
    }
    notification['md5sig'] = generate_notification_hash(
        MERCHANT_ID, order_id, amount, currency, status_code, secret,
    )
    notification.update(extra)
    return notification

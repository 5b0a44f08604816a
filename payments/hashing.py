"""
PayHere hash authentication

PayHere signs checkout requests and notifications with an MD5 digest built from
the merchant id, order id, amount (two decimals), currency and the uppercased
MD5 of the merchant secret. Notifications also mix in the status code.
"""
import hashlib
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

logger = logging.getLogger(__name__)

REQUIRED_SIGNATURE_FIELDS = ('merchant_id', 'order_id', 'payhere_amount', 'payhere_currency', 'status_code', 'md5sig')


def _md5_upper(value):
    return hashlib.md5(value.encode('utf-8')).hexdigest().upper()


def format_amount(amount):
    """
    Format an amount with exactly two decimal places.

    Uses Decimal so 10.005 and friends do not drift through float rounding.
    """
    try:
        value = Decimal(str(amount).strip())
        if not value.is_finite():
            raise ValueError(f"Invalid amount: {amount!r}")
        value = value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    return str(value)


def hash_secret(merchant_secret):
    """Uppercased MD5 of the merchant secret"""
    return _md5_upper(str(merchant_secret).strip())


def generate_checkout_hash(merchant_id, order_id, amount, currency, merchant_secret):
    """
    Signature sent with a checkout request (one-time and recurring).

    No status code is involved at this stage.
    """
    hash_string = (
        f"{str(merchant_id).strip()}"
        f"{str(order_id).strip()}"
        f"{format_amount(amount)}"
        f"{str(currency).strip().upper()}"
        f"{hash_secret(merchant_secret)}"
    )
    return _md5_upper(hash_string)


def generate_notification_hash(merchant_id, order_id, amount, currency, status_code, merchant_secret):
    """Signature PayHere attaches to a payment notification (md5sig)"""
    hash_string = (
        f"{str(merchant_id).strip()}"
        f"{str(order_id).strip()}"
        f"{format_amount(amount)}"
        f"{str(currency).strip()}"
        f"{str(status_code).strip()}"
        f"{hash_secret(merchant_secret)}"
    )
    return _md5_upper(hash_string)


def verify_notification_hash(notification, merchant_secret):
    """
    Recompute the md5sig of a notification and compare it case-insensitively.

    Any missing field or unparsable amount fails closed.
    """
    if not merchant_secret:
        logger.error("Cannot verify PayHere notification: merchant secret not configured")
        return False

    if any(not notification.get(field) for field in REQUIRED_SIGNATURE_FIELDS):
        return False

    try:
        local_hash = generate_notification_hash(
            notification['merchant_id'],
            notification['order_id'],
            notification['payhere_amount'],
            notification['payhere_currency'],
            notification['status_code'],
            merchant_secret,
        )
    except ValueError as e:
        logger.warning(f"PayHere notification hash could not be computed: {e}")
        return False

    return local_hash == str(notification['md5sig']).strip().upper()

"""
PayHere notification router

Authenticates a server-to-server payment notification, works out which
commerce flow it belongs to and hands it to the matching handler. Every
authenticated notification is recorded as a PaymentNotification row whose
final status says how it was handled.
"""
import logging
from dataclasses import dataclass

from django.db import DatabaseError

from orders.models import CartOrder
from orders.services import apply_order_notification
from subscriptions.models import Subscription
from subscriptions.renewals import (
    RECURRING_EVENT_TYPE,
    apply_failed_payment,
    apply_initial_payment,
    apply_recurring_payment,
)

from .exceptions import AuthenticityError, NotFoundError, TransientStoreError
from .hashing import verify_notification_hash
from .models import PaymentNotification, PaymentType
from .payment_gateways import CART_ORDER_MARKER, SUBSCRIPTION_MARKER

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    'merchant_id',
    'order_id',
    'payment_id',
    'payhere_amount',
    'payhere_currency',
    'status_code',
    'md5sig',
)

SUCCESS_STATUS_CODE = '2'

LEGACY_ORDER_PREFIXES = [
    ('CART_', PaymentType.CART),
    ('FOOD_', PaymentType.SUBSCRIPTION),
]

ACTION_ORDER_UPDATE = 'ORDER_UPDATE'
ACTION_INITIAL_PAYMENT = 'INITIAL_PAYMENT'
ACTION_RECURRING_PAYMENT = 'RECURRING_PAYMENT'
ACTION_FAILED_PAYMENT = 'FAILED_PAYMENT'


def normalize_notification(data):
    """Flatten form data (QueryDict or dict) into a dict of trimmed strings"""
    if hasattr(data, 'dict'):
        data = data.dict()
    return {
        key: str(value).strip()
        for key, value in (data or {}).items()
        if value is not None
    }


@dataclass
class NotificationOutcome:
    """What the router did with an authenticated notification"""
    record: PaymentNotification
    payment_type: str
    action: str
    status: str
    error: str = None

    @property
    def processed(self):
        return self.status == PaymentNotification.STATUS_PROCESSED


class NotificationRouter:
    """
    Routes authenticated PayHere notifications to the order or subscription handlers.

    Handler failures never escape `handle()`: the gateway retries every
    non-2xx answer, so once a notification is authenticated its outcome is
    recorded on the audit row and acknowledged.
    """

    def __init__(self, config):
        self.config = config

    def authenticate(self, data):
        """
        Validate shape, merchant and signature.

        Returns the normalised notification or raises AuthenticityError with
        the short reason sent back to the gateway.
        """
        notification = normalize_notification(data)

        missing = [field for field in REQUIRED_FIELDS if not notification.get(field)]
        if missing:
            logger.warning(f"PayHere notification rejected, missing fields: {', '.join(missing)}")
            raise AuthenticityError('Missing required fields')

        if notification['merchant_id'] != self.config.merchant_id:
            logger.warning(f"PayHere notification rejected, merchant mismatch for order {notification['order_id']}")
            raise AuthenticityError('Merchant ID mismatch')

        if not verify_notification_hash(notification, self.config.merchant_secret):
            logger.warning(f"PayHere notification rejected, invalid hash for order {notification['order_id']}")
            raise AuthenticityError('Invalid hash')

        return notification

    def resolve_payment_type(self, notification):
        """
        Payment type of a notification, or None when it cannot be told.

        Checkout markers win, then the entity persisted for the order id,
        then the legacy order id prefix.
        """
        if notification.get('custom_1') == CART_ORDER_MARKER:
            return PaymentType.CART
        if notification.get('custom_2') == SUBSCRIPTION_MARKER:
            return PaymentType.SUBSCRIPTION

        order_id = notification['order_id']
        cart_type = CartOrder.objects.filter(payhere_order_id=order_id).values_list('payment_type', flat=True).first()
        if cart_type:
            return cart_type
        subscription_type = Subscription.objects.filter(payhere_order_id=order_id).values_list('payment_type', flat=True).first()
        if subscription_type:
            return subscription_type

        for prefix, payment_type in LEGACY_ORDER_PREFIXES:
            if order_id.startswith(prefix):
                return payment_type
        return None

    @staticmethod
    def is_recurring_event(notification):
        return (
            notification.get('event_type') == RECURRING_EVENT_TYPE
            and bool(notification.get('recurring_token'))
        )

    def resolve_action(self, notification, payment_type, success):
        if payment_type != PaymentType.SUBSCRIPTION:
            return ACTION_ORDER_UPDATE
        if self.is_recurring_event(notification):
            return ACTION_RECURRING_PAYMENT
        return ACTION_INITIAL_PAYMENT if success else ACTION_FAILED_PAYMENT

    def handle(self, data):
        """Authenticate, record and dispatch one notification"""
        notification = self.authenticate(data)
        success = notification['status_code'] == SUCCESS_STATUS_CODE

        payment_type = self.resolve_payment_type(notification)
        action = self.resolve_action(notification, payment_type, success)

        record = PaymentNotification.objects.create(
            order_id=notification['order_id'],
            payment_id=notification['payment_id'],
            status_code=notification['status_code'],
            payment_type=payment_type or '',
            action=action,
            payload=notification,
        )
        logger.info(
            f"PayHere notification {record.id}: order={record.order_id} status_code={record.status_code} "
            f"type={payment_type or 'UNKNOWN'} action={action}"
        )

        try:
            self._dispatch(action, notification, success)
        except NotFoundError as e:
            logger.warning(f"PayHere notification {record.id} ignored: {e}")
            record.mark(PaymentNotification.STATUS_IGNORED, str(e))
            return NotificationOutcome(record, payment_type, action, record.status, str(e))
        except DatabaseError as e:
            error = TransientStoreError(f"Store failure while applying {action}: {e}")
            logger.error(f"PayHere notification {record.id} failed: {error}")
            record.mark(PaymentNotification.STATUS_FAILED, str(error))
            return NotificationOutcome(record, payment_type, action, record.status, str(error))
        except Exception as e:
            logger.exception(f"PayHere notification {record.id} failed while applying {action}")
            record.mark(PaymentNotification.STATUS_FAILED, str(e))
            return NotificationOutcome(record, payment_type, action, record.status, str(e))

        record.mark(PaymentNotification.STATUS_PROCESSED)
        return NotificationOutcome(record, payment_type, action, record.status)

    def _dispatch(self, action, notification, success):
        if action == ACTION_RECURRING_PAYMENT:
            apply_recurring_payment(notification, success)
        elif action == ACTION_INITIAL_PAYMENT:
            apply_initial_payment(notification)
        elif action == ACTION_FAILED_PAYMENT:
            apply_failed_payment(notification)
        else:
            apply_order_notification(notification, success)

"""
Cart order services
Checkout persistence and the notification-driven order update
"""
import logging
from decimal import Decimal

from django.db import transaction

from payments.exceptions import NotFoundError
from payments.models import PaymentType
from payments.utils import CART_ORDER_PREFIX, generate_order_id

from .models import CartOrder, OrderItem

logger = logging.getLogger(__name__)


@transaction.atomic
def create_cart_order(customer, cart_items, amount, currency):
    """
    Persist a pending cart order ahead of the PayHere checkout.

    `customer` carries already-normalised contact fields; totals come from the
    requested amount (tax and shipping are not charged yet).
    """
    order_id = generate_order_id(CART_ORDER_PREFIX)
    subtotal = Decimal(str(amount))
    tax = Decimal('0.00')
    shipping = Decimal('0.00')

    order = CartOrder.objects.create(
        payment_type=PaymentType.CART,
        customer_email=customer['email'],
        customer_name=customer['name'],
        phone_number=customer['phone'],
        address=customer['address'],
        city=customer.get('city') or 'Colombo',
        order_id=order_id,
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total_amount=subtotal + tax + shipping,
        currency=currency.upper(),
        payment_status=CartOrder.PAYMENT_STATUS_PENDING,
        order_status=CartOrder.ORDER_STATUS_PENDING,
        payhere_order_id=order_id,
    )

    for item in cart_items or []:
        OrderItem.objects.create(
            order=order,
            product_id=str(item.get('productId') or item.get('product_id')),
            product_name=item.get('productName') or item.get('product_name') or '',
            quantity=int(item['quantity']),
            price=Decimal(str(item['price'])),
        )

    logger.info(f"Cart order {order_id} created: amount={order.total_amount} items={len(cart_items or [])}")
    return order


def apply_order_notification(notification, success):
    """
    Finalise a cart order from a PayHere notification.

    Success marks the order completed/confirmed and stores the payment id;
    failure marks it failed/cancelled. Orders are never created here.
    """
    order_id = notification['order_id']

    with transaction.atomic():
        order = CartOrder.objects.select_for_update().filter(payhere_order_id=order_id).first()
        if order is None:
            raise NotFoundError(f"Cart order not found: {order_id}")

        if success:
            order.payment_status = CartOrder.PAYMENT_STATUS_COMPLETED
            order.order_status = CartOrder.ORDER_STATUS_CONFIRMED
            order.payhere_payment_id = notification.get('payment_id')
            order.save(update_fields=['payment_status', 'order_status', 'payhere_payment_id', 'updated_at'])
            logger.info(f"Cart order {order_id} payment completed ({order.payhere_payment_id})")
        else:
            order.payment_status = CartOrder.PAYMENT_STATUS_FAILED
            order.order_status = CartOrder.ORDER_STATUS_CANCELLED
            order.save(update_fields=['payment_status', 'order_status', 'updated_at'])
            logger.info(f"Cart order {order_id} payment failed: {notification.get('status_message', '')}")

    return order

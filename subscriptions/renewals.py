"""
Subscription renewal state machine

Applies PayHere billing events to a food subscription: the initial payment that
creates (or completes) the subscription, recurring monthly charges, and failed
payments that count towards automatic cancellation.

Every transition locks the subscription row for the duration of its
read-modify-write so concurrent or duplicate deliveries serialize.
"""
import logging
from datetime import datetime, time, timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from payments.exceptions import NotFoundError
from payments.models import PaymentType

from .models import Subscription, RenewalHistoryEntry, SubscriptionLog, add_billing_cycle

logger = logging.getLogger(__name__)

RECURRING_EVENT_TYPE = 'SUBSCRIPTION_PAYMENT'
FALLBACK_BILLING_INTERVAL = timedelta(days=30)


def parse_occurrence_date(value):
    """Parse PayHere's next_occurrence_date (date or datetime) into an aware datetime"""
    if not value:
        return None
    value = str(value).strip()

    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            logger.warning(f"Ignoring unparsable next_occurrence_date: {value!r}")
            return None
        parsed = datetime.combine(day, time.min)

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _amount(notification, default=None):
    try:
        return Decimal(str(notification.get('payhere_amount')))
    except (InvalidOperation, TypeError, ValueError):
        return default


def _plan_id(notification):
    custom_1 = notification.get('custom_1') or ''
    if custom_1.startswith('plan_') and len(custom_1) > len('plan_'):
        return custom_1[len('plan_'):]
    return getattr(settings, 'SUBSCRIPTION_PLAN_ID', 'food_premium')


def _locked(queryset):
    return queryset.select_for_update()


def create_subscription_record(user_email, customer_name, address, payhere_order_id, phone_number=None,
                               amount=None, currency=None, payment_method='payhere',
                               recurring_token=None, enable_auto_renew=True):
    """
    Explicitly create a subscription after checkout.

    Idempotent on the gateway order id: returns (subscription, created).
    """
    if payhere_order_id:
        existing = Subscription.objects.filter(payhere_order_id=payhere_order_id).first()
        if existing is not None:
            return existing, False

    amount = Decimal(str(amount if amount is not None else settings.SUBSCRIPTION_FIXED_AMOUNT))
    currency = (currency or settings.DEFAULT_CURRENCY).upper()

    try:
        subscription = _create_record(
            user_email, customer_name, address, payhere_order_id, phone_number,
            amount, currency, payment_method, recurring_token, enable_auto_renew,
        )
    except IntegrityError:
        # Lost the race against a concurrent request for the same order id
        existing = Subscription.objects.filter(payhere_order_id=payhere_order_id).first()
        if existing is None:
            raise
        return existing, False

    logger.info(f"Subscription record {subscription.id} created for {subscription.user_email} (auto_renew={subscription.auto_renew})")
    return subscription, True


def _create_record(user_email, customer_name, address, payhere_order_id, phone_number,
                   amount, currency, payment_method, recurring_token, enable_auto_renew):
    start_date = timezone.now()
    end_date = add_billing_cycle(start_date)

    with transaction.atomic():
        subscription = Subscription.objects.create(
            payment_type=PaymentType.SUBSCRIPTION,
            user_email=user_email.strip().lower(),
            customer_name=customer_name.strip(),
            phone_number=(phone_number or '').strip() or '0771234567',
            address=address.strip(),
            plan_id=settings.SUBSCRIPTION_PLAN_ID,
            plan_name=settings.SUBSCRIPTION_PLAN_NAME,
            status=Subscription.STATUS_ACTIVE,
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            payhere_order_id=payhere_order_id or None,
            recurring_token=recurring_token or None,
            auto_renew=bool(enable_auto_renew),
            start_date=start_date,
            end_date=end_date,
            next_billing_date=end_date if enable_auto_renew else None,
        )
        subscription.append_history(
            RenewalHistoryEntry.STATUS_SUCCESS,
            amount=amount,
            payment_id=payhere_order_id,
            attempt=1,
            token=recurring_token or None,
        )
        subscription.log(
            SubscriptionLog.ACTION_CREATED,
            paymentId=payhere_order_id,
            amount=amount,
            currency=currency,
            autoRenewal=subscription.auto_renew,
            recurringToken=bool(recurring_token),
            payhereToken=recurring_token or None,
        )
    return subscription


def apply_initial_payment(notification):
    """
    First successful charge of a subscription.

    Completes an existing record for the order id (attaching the recurring
    token) or creates a new active subscription with one success entry.
    Returns (subscription, created).
    """
    order_id = notification['order_id']
    payment_id = notification.get('payment_id')
    recurring_token = notification.get('recurring_token') or None
    next_occurrence = parse_occurrence_date(notification.get('next_occurrence_date'))

    with transaction.atomic():
        subscription = _locked(Subscription.objects.filter(payhere_order_id=order_id)).first()

        if subscription is not None:
            if recurring_token:
                subscription.recurring_token = recurring_token
            subscription.payhere_payment_id = payment_id
            subscription.status = Subscription.STATUS_ACTIVE
            if subscription.recurring_token:
                subscription.auto_renew = True
                subscription.next_billing_date = next_occurrence or (timezone.now() + FALLBACK_BILLING_INTERVAL)
            subscription.save()
            logger.info(f"Subscription {subscription.id} completed by initial payment {payment_id} (auto_renew={subscription.auto_renew})")
            return subscription, False

        amount = _amount(notification, default=settings.SUBSCRIPTION_FIXED_AMOUNT)
        currency = (notification.get('payhere_currency') or settings.DEFAULT_CURRENCY).upper()
        start_date = timezone.now()
        end_date = add_billing_cycle(start_date)

        subscription = Subscription.objects.create(
            payment_type=PaymentType.SUBSCRIPTION,
            user_email=(notification.get('email') or 'customer@example.com').strip().lower(),
            customer_name='Food Subscriber',
            address='Colombo, Sri Lanka',
            plan_id=_plan_id(notification),
            plan_name=settings.SUBSCRIPTION_PLAN_NAME,
            status=Subscription.STATUS_ACTIVE,
            amount=amount,
            currency=currency,
            payhere_order_id=order_id,
            payhere_payment_id=payment_id,
            recurring_token=recurring_token,
            auto_renew=bool(recurring_token),
            renewal_attempts=0,
            start_date=start_date,
            end_date=end_date,
            next_billing_date=(next_occurrence or end_date) if recurring_token else None,
        )
        subscription.append_history(
            RenewalHistoryEntry.STATUS_SUCCESS,
            amount=amount,
            payment_id=payment_id,
            attempt=1,
            token=recurring_token,
        )
        subscription.log(
            SubscriptionLog.ACTION_CREATED,
            paymentId=payment_id,
            amount=amount,
            currency=currency,
            autoRenewal=subscription.auto_renew,
            recurringToken=bool(recurring_token),
            payhereToken=recurring_token,
        )

    logger.info(f"Subscription {subscription.id} created from initial payment {payment_id} (auto_renew={subscription.auto_renew})")
    return subscription, True


def find_recurring_subscription(recurring_token=None, subscription_ref=None, email=None, lock=False):
    """
    Locate the subscription a recurring charge belongs to.

    Exact recurring-token match wins; otherwise the customer's email among
    subscriptions with auto-renew on. Several matches resolve to the most
    recently created one, which is a heuristic: two live subscriptions for the
    same email cannot be told apart here.
    """
    queryset = Subscription.objects.filter(auto_renew=True)
    if lock:
        queryset = _locked(queryset)

    tokens = [value for value in (recurring_token, subscription_ref) if value]
    if tokens:
        subscription = queryset.filter(recurring_token__in=tokens).order_by('-created_at').first()
        if subscription is not None:
            return subscription

    if email:
        return queryset.filter(user_email=email.strip().lower()).order_by('-created_at').first()
    return None


def apply_recurring_payment(notification, success):
    """Monthly charge on an auto-renewing subscription (success or failure)"""
    payment_id = notification.get('payment_id')
    status_code = notification.get('status_code')

    with transaction.atomic():
        subscription = find_recurring_subscription(
            recurring_token=notification.get('recurring_token'),
            subscription_ref=notification.get('subscription_id'),
            email=notification.get('email'),
            lock=True,
        )
        if subscription is None:
            raise NotFoundError('Subscription not found for recurring payment')

        amount = _amount(notification, default=subscription.amount)
        # A subscription matched by email may carry no token (or a stale one)
        subscription.recurring_token = notification.get('recurring_token') or subscription.recurring_token

        if success:
            return _renew(subscription, notification, payment_id, amount)

        subscription.renewal_attempts += 1
        subscription.payment_failure = True
        subscription.payment_failure_reason = f"Payment failed with status code: {status_code}"
        subscription.last_payment_failure_date = timezone.now()
        if subscription.has_exhausted_renewals():
            subscription.status = Subscription.STATUS_CANCELLED
            subscription.auto_renew = False
        else:
            subscription.status = Subscription.STATUS_PENDING_RENEWAL
        subscription.save()

        subscription.append_history(
            RenewalHistoryEntry.STATUS_FAILED,
            amount=amount,
            payment_id=payment_id,
            failure_reason=subscription.payment_failure_reason,
            attempt=subscription.renewal_attempts,
            token=subscription.recurring_token,
        )
        subscription.log(
            SubscriptionLog.ACTION_FAILED,
            paymentId=payment_id,
            amount=amount,
            currency=subscription.currency,
            reason=subscription.payment_failure_reason,
            payhereToken=subscription.recurring_token,
        )

    logger.info(
        f"Recurring payment failed for subscription {subscription.id}: "
        f"attempt {subscription.renewal_attempts}/{subscription.max_renewal_attempts}, status={subscription.status}"
    )
    return subscription


def _renew(subscription, notification, payment_id, amount):
    # Redelivery of an already applied charge must not extend the period twice
    if payment_id and subscription.renewal_history.filter(
        payment_id=payment_id, status=RenewalHistoryEntry.STATUS_SUCCESS
    ).exists():
        logger.info(f"Recurring payment {payment_id} already applied to subscription {subscription.id}")
        return subscription

    previous_end_date = subscription.end_date or timezone.now()
    new_end_date = add_billing_cycle(previous_end_date, subscription.billing_cycle)
    attempt = subscription.renewal_attempts + 1

    subscription.status = Subscription.STATUS_ACTIVE
    subscription.end_date = new_end_date
    subscription.next_billing_date = parse_occurrence_date(notification.get('next_occurrence_date')) or new_end_date
    subscription.renewal_attempts = 0
    subscription.payment_failure = False
    subscription.payment_failure_reason = None
    subscription.payhere_payment_id = payment_id or subscription.payhere_payment_id
    subscription.save()

    subscription.append_history(
        RenewalHistoryEntry.STATUS_SUCCESS,
        amount=amount,
        payment_id=payment_id,
        attempt=attempt,
        token=subscription.recurring_token,
    )
    subscription.log(
        SubscriptionLog.ACTION_RENEWED,
        paymentId=payment_id,
        amount=amount,
        currency=subscription.currency,
        payhereToken=subscription.recurring_token,
    )

    logger.info(
        f"Subscription {subscription.id} renewed: end date {previous_end_date.isoformat()} -> {new_end_date.isoformat()}"
    )
    return subscription


def apply_failed_payment(notification):
    """Failed charge matched by gateway order id (initial or standalone payment)"""
    order_id = notification['order_id']
    status_code = notification.get('status_code')
    status_message = notification.get('status_message') or ''
    reason = f"{status_code} - {status_message}" if status_message else str(status_code)

    with transaction.atomic():
        subscription = _locked(Subscription.objects.filter(payhere_order_id=order_id)).first()
        if subscription is None:
            raise NotFoundError(f"Subscription not found for order {order_id}")

        subscription.renewal_attempts += 1
        subscription.status = Subscription.STATUS_PAYMENT_FAILED
        subscription.payment_failure = True
        subscription.payment_failure_reason = reason
        subscription.last_payment_failure_date = timezone.now()
        if subscription.has_exhausted_renewals():
            subscription.status = Subscription.STATUS_CANCELLED
            subscription.auto_renew = False
        subscription.save()

        subscription.append_history(
            RenewalHistoryEntry.STATUS_FAILED,
            amount=subscription.amount,
            payment_id=notification.get('payment_id'),
            failure_reason=reason,
            attempt=subscription.renewal_attempts,
        )
        subscription.log(
            SubscriptionLog.ACTION_FAILED,
            amount=subscription.amount,
            currency=subscription.currency,
            reason=reason,
        )

    logger.info(f"Subscription {subscription.id} payment failed ({reason}), status={subscription.status}")
    return subscription

"""
Tests for the subscription renewal state machine
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.test import TestCase
from django.utils import timezone

from payments.exceptions import NotFoundError
from subscriptions.models import RenewalHistoryEntry, Subscription, SubscriptionLog
from subscriptions.renewals import (
    apply_failed_payment,
    apply_initial_payment,
    apply_recurring_payment,
    create_subscription_record,
    find_recurring_subscription,
    parse_occurrence_date,
)


def create_subscription(**overrides):
    values = {
        'user_email': 'kamala@example.com',
        'customer_name': 'Kamala Silva',
        'address': 'Kandy Road, Kadawatha',
        'recurring_token': 'tok-1',
        'auto_renew': True,
    }
    values.update(overrides)
    return Subscription.objects.create(**values)


class InitialPaymentTestCase(TestCase):

    def notification(self, **extra):
        data = {
            'order_id': 'FOOD_RECURRING_1',
            'payment_id': '320025071278',
            'payhere_amount': '2500.00',
            'payhere_currency': 'LKR',
            'status_code': '2',
        }
        data.update(extra)
        return data

    def test_without_token_creates_non_renewing_subscription(self):
        subscription, created = apply_initial_payment(self.notification())

        self.assertTrue(created)
        self.assertEqual(subscription.status, Subscription.STATUS_ACTIVE)
        self.assertFalse(subscription.auto_renew)
        self.assertIsNone(subscription.recurring_token)
        self.assertIsNone(subscription.next_billing_date)
        self.assertEqual(subscription.end_date, subscription.start_date + relativedelta(months=1))
        self.assertEqual(subscription.amount, Decimal('2500.00'))

        entry = subscription.renewal_history.get()
        self.assertEqual(entry.status, RenewalHistoryEntry.STATUS_SUCCESS)
        self.assertEqual(entry.attempt, 1)
        self.assertEqual(entry.payment_id, '320025071278')
        self.assertEqual(subscription.logs.get().action, SubscriptionLog.ACTION_CREATED)

    def test_with_token_enables_auto_renew(self):
        subscription, _ = apply_initial_payment(self.notification(
            recurring_token='tok-A',
            next_occurrence_date='2026-12-01',
            custom_1='plan_food_family',
            email=' Kamala@Example.com',
        ))

        self.assertTrue(subscription.auto_renew)
        self.assertEqual(subscription.recurring_token, 'tok-A')
        self.assertEqual(subscription.next_billing_date, datetime(2026, 12, 1, tzinfo=dt_timezone.utc))
        self.assertEqual(subscription.plan_id, 'food_family')
        self.assertEqual(subscription.user_email, 'kamala@example.com')

    def test_completes_existing_record(self):
        existing, _ = create_subscription_record(
            user_email='kamala@example.com',
            customer_name='Kamala Silva',
            address='Kandy Road',
            payhere_order_id='FOOD_RECURRING_1',
            enable_auto_renew=False,
        )

        subscription, created = apply_initial_payment(self.notification(recurring_token='tok-A'))

        self.assertFalse(created)
        self.assertEqual(subscription.pk, existing.pk)
        self.assertEqual(subscription.recurring_token, 'tok-A')
        self.assertTrue(subscription.auto_renew)
        self.assertEqual(subscription.payhere_payment_id, '320025071278')
        self.assertIsNotNone(subscription.next_billing_date)
        self.assertEqual(Subscription.objects.count(), 1)


class RecurringPaymentTestCase(TestCase):

    def setUp(self):
        self.subscription = create_subscription(
            payhere_order_id='FOOD_RECURRING_1',
            end_date=datetime(2026, 1, 31, 9, 0, tzinfo=dt_timezone.utc),
        )

    def notification(self, payment_id='pay-1', status_code='2', **extra):
        data = {
            'order_id': 'FOOD_RECURRING_1',
            'payment_id': payment_id,
            'payhere_amount': '2500.00',
            'status_code': status_code,
            'recurring_token': 'tok-1',
        }
        data.update(extra)
        return data

    def test_success_extends_by_calendar_month(self):
        apply_recurring_payment(self.notification(), success=True)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.end_date, datetime(2026, 2, 28, 9, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(self.subscription.next_billing_date, self.subscription.end_date)
        self.assertEqual(self.subscription.status, Subscription.STATUS_ACTIVE)
        self.assertEqual(self.subscription.renewal_attempts, 0)
        self.assertEqual(self.subscription.payhere_payment_id, 'pay-1')
        self.assertEqual(self.subscription.logs.get().action, SubscriptionLog.ACTION_RENEWED)

    def test_success_uses_next_occurrence_date(self):
        apply_recurring_payment(self.notification(next_occurrence_date='2026-03-02 10:00:00'), success=True)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.next_billing_date, datetime(2026, 3, 2, 10, 0, tzinfo=dt_timezone.utc))

    def test_redelivered_success_is_applied_once(self):
        apply_recurring_payment(self.notification(), success=True)
        apply_recurring_payment(self.notification(), success=True)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.end_date, datetime(2026, 2, 28, 9, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(self.subscription.renewal_history.count(), 1)

    def test_success_clears_previous_failures(self):
        apply_recurring_payment(self.notification(payment_id='pay-1', status_code='-2'), success=False)
        apply_recurring_payment(self.notification(payment_id='pay-2'), success=True)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, Subscription.STATUS_ACTIVE)
        self.assertEqual(self.subscription.renewal_attempts, 0)
        self.assertFalse(self.subscription.payment_failure)
        self.assertIsNone(self.subscription.payment_failure_reason)
        self.assertEqual(self.subscription.renewal_history.last().attempt, 2)

    def test_failure_below_limit_awaits_renewal(self):
        apply_recurring_payment(self.notification(status_code='-2'), success=False)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, Subscription.STATUS_PENDING_RENEWAL)
        self.assertEqual(self.subscription.renewal_attempts, 1)
        self.assertTrue(self.subscription.auto_renew)
        self.assertTrue(self.subscription.payment_failure)
        self.assertEqual(self.subscription.payment_failure_reason, 'Payment failed with status code: -2')
        self.assertIsNotNone(self.subscription.last_payment_failure_date)

        entry = self.subscription.renewal_history.get()
        self.assertEqual(entry.status, RenewalHistoryEntry.STATUS_FAILED)
        self.assertEqual(entry.attempt, 1)

    def test_failure_at_limit_cancels(self):
        Subscription.objects.filter(pk=self.subscription.pk).update(renewal_attempts=2)

        apply_recurring_payment(self.notification(status_code='-2'), success=False)

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.renewal_attempts, 3)
        self.assertEqual(self.subscription.status, Subscription.STATUS_CANCELLED)
        self.assertFalse(self.subscription.auto_renew)

    def test_charge_matched_by_email_stores_its_token(self):
        Subscription.objects.filter(pk=self.subscription.pk).update(recurring_token=None)

        apply_recurring_payment(
            self.notification(recurring_token='tok-2', email='kamala@example.com'), success=True,
        )

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.recurring_token, 'tok-2')
        self.assertEqual(self.subscription.renewal_history.get().payhere_token, 'tok-2')
        self.assertEqual(self.subscription.logs.get().details['payhereToken'], 'tok-2')

    def test_failed_charge_matched_by_email_stores_its_token(self):
        Subscription.objects.filter(pk=self.subscription.pk).update(recurring_token=None)

        apply_recurring_payment(
            self.notification(status_code='-2', recurring_token='tok-2', email='kamala@example.com'), success=False,
        )

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, Subscription.STATUS_PENDING_RENEWAL)
        self.assertEqual(self.subscription.recurring_token, 'tok-2')
        self.assertEqual(self.subscription.renewal_history.get().payhere_token, 'tok-2')

    def test_unmatched_charge_raises(self):
        with self.assertRaises(NotFoundError):
            apply_recurring_payment(self.notification(recurring_token='tok-unknown'), success=True)


class FindRecurringSubscriptionTestCase(TestCase):

    def setUp(self):
        now = timezone.now()
        self.older = create_subscription(recurring_token='tok-A')
        self.newer = create_subscription(recurring_token='tok-B')
        Subscription.objects.filter(pk=self.older.pk).update(created_at=now - timedelta(days=10))
        Subscription.objects.filter(pk=self.newer.pk).update(created_at=now)

    def test_token_match_wins_over_email(self):
        found = find_recurring_subscription(recurring_token='tok-A', email='kamala@example.com')
        self.assertEqual(found.pk, self.older.pk)

    def test_subscription_reference_is_tried_as_token(self):
        found = find_recurring_subscription(subscription_ref='tok-A')
        self.assertEqual(found.pk, self.older.pk)

    def test_email_fallback_picks_newest(self):
        found = find_recurring_subscription(recurring_token='tok-unknown', email='KAMALA@example.com ')
        self.assertEqual(found.pk, self.newer.pk)

    def test_subscriptions_without_auto_renew_are_skipped(self):
        Subscription.objects.update(auto_renew=False)
        self.assertIsNone(find_recurring_subscription(recurring_token='tok-A', email='kamala@example.com'))

    def test_nothing_to_match_on(self):
        self.assertIsNone(find_recurring_subscription())


class FailedPaymentTestCase(TestCase):

    def setUp(self):
        self.subscription = create_subscription(payhere_order_id='FOOD_RECURRING_9')

    def notification(self):
        return {
            'order_id': 'FOOD_RECURRING_9',
            'payment_id': 'pay-9',
            'status_code': '-2',
            'status_message': 'Payment declined',
        }

    def test_marks_payment_failed(self):
        apply_failed_payment(self.notification())

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, Subscription.STATUS_PAYMENT_FAILED)
        self.assertEqual(self.subscription.renewal_attempts, 1)
        self.assertEqual(self.subscription.payment_failure_reason, '-2 - Payment declined')
        self.assertEqual(self.subscription.logs.get().action, SubscriptionLog.ACTION_FAILED)

    def test_exhausted_attempts_cancel(self):
        for _ in range(3):
            apply_failed_payment(self.notification())

        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, Subscription.STATUS_CANCELLED)
        self.assertFalse(self.subscription.auto_renew)
        self.assertEqual(
            list(self.subscription.renewal_history.values_list('attempt', flat=True)),
            [1, 2, 3],
        )

    def test_unknown_order_raises(self):
        notification = self.notification()
        notification['order_id'] = 'FOOD_RECURRING_404'

        with self.assertRaises(NotFoundError):
            apply_failed_payment(notification)


class CreateSubscriptionRecordTestCase(TestCase):

    def create(self, **overrides):
        values = {
            'user_email': ' Kamala@Example.com ',
            'customer_name': 'Kamala Silva',
            'address': 'Kandy Road',
            'payhere_order_id': 'FOOD_RECURRING_5',
        }
        values.update(overrides)
        return create_subscription_record(**values)

    def test_creates_active_record(self):
        subscription, created = self.create(recurring_token='tok-5')

        self.assertTrue(created)
        self.assertEqual(subscription.user_email, 'kamala@example.com')
        self.assertEqual(subscription.amount, Decimal('2500'))
        self.assertEqual(subscription.currency, 'LKR')
        self.assertTrue(subscription.auto_renew)
        self.assertEqual(subscription.next_billing_date, subscription.end_date)
        self.assertEqual(subscription.renewal_history.count(), 1)

    def test_same_order_id_returns_existing(self):
        first, _ = self.create()
        second, created = self.create(customer_name='Someone Else')

        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Subscription.objects.count(), 1)

    def test_auto_renew_disabled(self):
        subscription, _ = self.create(enable_auto_renew=False)

        self.assertFalse(subscription.auto_renew)
        self.assertIsNone(subscription.next_billing_date)


class ParseOccurrenceDateTestCase(TestCase):

    def test_empty_and_invalid_values(self):
        for value in (None, '', 'next tuesday'):
            with self.subTest(value=value):
                self.assertIsNone(parse_occurrence_date(value))

    def test_date_becomes_aware_midnight(self):
        self.assertEqual(parse_occurrence_date('2026-11-18'), datetime(2026, 11, 18, tzinfo=dt_timezone.utc))

    def test_datetime_is_kept(self):
        self.assertEqual(
            parse_occurrence_date(' 2026-11-18 10:30:00 '),
            datetime(2026, 11, 18, 10, 30, tzinfo=dt_timezone.utc),
        )

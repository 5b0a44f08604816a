"""
Tests for periodic subscription housekeeping
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from subscriptions.models import Subscription
from subscriptions.tasks import expire_lapsed_subscriptions


class ExpireLapsedSubscriptionsTestCase(TestCase):

    def create(self, **overrides):
        values = {
            'user_email': 'kamala@example.com',
            'customer_name': 'Kamala Silva',
            'address': 'Kandy Road',
            'auto_renew': False,
            'end_date': timezone.now() - timedelta(days=1),
            'next_billing_date': timezone.now() - timedelta(days=1),
        }
        values.update(overrides)
        return Subscription.objects.create(**values)

    def test_expires_lapsed_non_renewing_subscriptions(self):
        lapsed = self.create()
        failed = self.create(status=Subscription.STATUS_PAYMENT_FAILED)
        renewing = self.create(auto_renew=True)
        running = self.create(end_date=timezone.now() + timedelta(days=5))
        cancelled = self.create(status=Subscription.STATUS_CANCELLED)

        self.assertEqual(expire_lapsed_subscriptions(), 2)

        for subscription in (lapsed, failed):
            subscription.refresh_from_db()
            self.assertEqual(subscription.status, Subscription.STATUS_EXPIRED)
            self.assertIsNone(subscription.next_billing_date)

        for subscription, expected in ((renewing, Subscription.STATUS_ACTIVE),
                                       (running, Subscription.STATUS_ACTIVE),
                                       (cancelled, Subscription.STATUS_CANCELLED)):
            subscription.refresh_from_db()
            self.assertEqual(subscription.status, expected)

    def test_nothing_to_expire(self):
        self.assertEqual(expire_lapsed_subscriptions(), 0)

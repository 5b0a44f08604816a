"""
Celery Tasks for Food Subscriptions
Periodic housekeeping; billing itself is driven by PayHere notifications
"""
from celery import shared_task
from django.utils import timezone
import logging

from .models import Subscription

logger = logging.getLogger(__name__)

EXPIRABLE_STATUSES = [
    Subscription.STATUS_ACTIVE,
    Subscription.STATUS_PENDING_RENEWAL,
    Subscription.STATUS_PAYMENT_FAILED,
]


@shared_task
def expire_lapsed_subscriptions():
    """
    Mark subscriptions past their end date with auto-renew off as expired
    Run daily
    """
    now = timezone.now()

    expired_count = Subscription.objects.filter(
        auto_renew=False,
        end_date__lt=now,
        status__in=EXPIRABLE_STATUSES,
    ).update(status=Subscription.STATUS_EXPIRED, next_billing_date=None, updated_at=now)

    logger.info(f"Expired {expired_count} lapsed food subscriptions")
    return expired_count

"""
Auto-renewal toggle

Cancels or reactivates future PayHere auto-renewal for a subscription. Both
operations run in one transaction and apply their update with a guarded
queryset.update(); zero modified rows means the subscription changed
concurrently, so the transaction is rolled back and a conflict is reported.
"""
import logging
import uuid
from dataclasses import dataclass, field

from django.db import transaction
from django.utils import timezone

from payments.exceptions import ConcurrencyConflict, PaymentGatewayError
from payments.payment_gateways import get_payment_gateway

from .models import Subscription, SubscriptionLog

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = 'User requested cancellation'

CANCELLABLE_STATUSES = [Subscription.STATUS_ACTIVE]
REACTIVATABLE_STATUSES = [Subscription.STATUS_ACTIVE, Subscription.STATUS_PENDING_RENEWAL]


@dataclass
class AutoRenewalResult:
    """Outcome of a toggle request"""
    OUTCOME_CANCELLED = 'cancelled'
    OUTCOME_REACTIVATED = 'reactivated'
    OUTCOME_NOT_FOUND = 'not_found'
    OUTCOME_ALREADY_DISABLED = 'already_disabled'
    OUTCOME_EXPIRED = 'expired'
    OUTCOME_CONFLICT = 'conflict'

    outcome: str
    message: str
    subscription: Subscription = None
    gateway_status: str = None
    details: dict = field(default_factory=dict)

    @property
    def success(self):
        return self.outcome in (self.OUTCOME_CANCELLED, self.OUTCOME_REACTIVATED, self.OUTCOME_ALREADY_DISABLED)


def _matching(subscription_id=None, email=None):
    """Subscriptions addressed by id (preferred) or customer email"""
    if subscription_id:
        try:
            return Subscription.objects.filter(pk=uuid.UUID(str(subscription_id)))
        except ValueError:
            return Subscription.objects.none()
    if email:
        return Subscription.objects.filter(user_email=email.strip().lower())
    return Subscription.objects.none()


def _cancel_at_gateway(gateway, recurring_token):
    """Best-effort gateway cancellation; failures are reported, never raised"""
    if not recurring_token:
        return {'success': True, 'error': None, 'requires_manual_cancellation': False}
    try:
        if gateway is None:
            gateway = get_payment_gateway()
        return gateway.cancel_recurring_token(recurring_token)
    except PaymentGatewayError as e:
        logger.error(f"PayHere recurring cancellation failed: {e}")
        return {'success': False, 'error': str(e), 'requires_manual_cancellation': True}


def cancel_auto_renew(subscription_id=None, email=None, reason=None, gateway=None):
    """
    Turn off auto-renewal for an active subscription.

    The subscription keeps running until its end date. The recurring token is
    dropped locally; if the gateway side call fails the audit entry is flagged
    for manual cancellation.
    """
    reason = reason or DEFAULT_CANCELLATION_REASON
    candidates = _matching(subscription_id, email)

    try:
        with transaction.atomic():
            subscription = candidates.select_for_update().filter(
                status__in=CANCELLABLE_STATUSES,
                auto_renew=True,
            ).order_by('-created_at').first()

            if subscription is None:
                # Only report "already disabled" when nothing addressed still renews
                if candidates.exists() and not candidates.filter(auto_renew=True).exists():
                    logger.info(f"Auto-renewal already disabled for {subscription_id or email}")
                    return AutoRenewalResult(
                        AutoRenewalResult.OUTCOME_ALREADY_DISABLED,
                        'Auto-renewal is already disabled',
                    )
                return AutoRenewalResult(
                    AutoRenewalResult.OUTCOME_NOT_FOUND,
                    'No active food subscription with auto-renewal found',
                )

            recurring_token = subscription.recurring_token
            now = timezone.now()

            updated = Subscription.objects.filter(
                pk=subscription.pk,
                status__in=CANCELLABLE_STATUSES,
                auto_renew=True,
            ).update(
                auto_renew=False,
                recurring_token=None,
                auto_renewal_cancelled_date=now,
                auto_renewal_cancelled_reason=reason,
                updated_at=now,
            )
            if updated == 0:
                raise ConcurrencyConflict(f"Subscription {subscription.pk} changed while cancelling auto-renewal")

            # The gateway token is only revoked once the local update has won
            gateway_result = _cancel_at_gateway(gateway, recurring_token)
            subscription.refresh_from_db()
            subscription.log(
                SubscriptionLog.ACTION_AUTO_RENEWAL_CANCELLED,
                reason=reason,
                payhereToken=recurring_token,
                payhereCancellationSuccess=gateway_result['success'],
                payhereCancellationError=gateway_result.get('error'),
                requiresManualCancellation=gateway_result.get('requires_manual_cancellation', False),
            )
    except ConcurrencyConflict as e:
        logger.error(f"Auto-renewal cancellation rolled back: {e}")
        return AutoRenewalResult(
            AutoRenewalResult.OUTCOME_CONFLICT,
            'Failed to cancel auto-renewal. Please try again or contact support.',
        )

    if subscription.end_date:
        until = f"{subscription.end_date:%Y-%m-%d}"
    else:
        until = 'the end of the current billing period'
    message = f"Auto-renewal cancelled successfully. Your food subscription will continue until {until}."
    if not gateway_result['success']:
        message += ' Note: PayHere recurring payment requires manual cancellation by our team.'

    logger.info(f"Auto-renewal cancelled for subscription {subscription.id}")
    return AutoRenewalResult(
        AutoRenewalResult.OUTCOME_CANCELLED,
        message,
        subscription=subscription,
        gateway_status='cancelled' if gateway_result['success'] else 'requires_manual_cancellation',
        details=gateway_result,
    )


def reactivate_auto_renew(subscription_id=None, email=None):
    """
    Turn auto-renewal back on for a subscription that is still running.

    Subscriptions past their end date cannot be reactivated; the customer has
    to subscribe again.
    """
    candidates = _matching(subscription_id, email)

    try:
        with transaction.atomic():
            subscription = candidates.select_for_update().filter(
                status__in=REACTIVATABLE_STATUSES,
                auto_renew=False,
            ).order_by('-created_at').first()

            if subscription is None:
                return AutoRenewalResult(
                    AutoRenewalResult.OUTCOME_NOT_FOUND,
                    'No eligible subscription found for reactivation',
                )

            now = timezone.now()
            if subscription.end_date and subscription.end_date <= now:
                return AutoRenewalResult(
                    AutoRenewalResult.OUTCOME_EXPIRED,
                    'Subscription has expired. Please create a new subscription.',
                    subscription=subscription,
                )

            updated = Subscription.objects.filter(
                pk=subscription.pk,
                status__in=REACTIVATABLE_STATUSES,
                auto_renew=False,
            ).update(
                auto_renew=True,
                status=Subscription.STATUS_ACTIVE,
                renewal_attempts=0,
                payment_failure=False,
                next_billing_date=subscription.next_billing_date or subscription.end_date,
                updated_at=now,
            )
            if updated == 0:
                raise ConcurrencyConflict(f"Subscription {subscription.pk} changed while reactivating auto-renewal")

            subscription.refresh_from_db()
            subscription.log(SubscriptionLog.ACTION_REACTIVATED, autoRenewal=True)
    except ConcurrencyConflict as e:
        logger.error(f"Auto-renewal reactivation rolled back: {e}")
        return AutoRenewalResult(
            AutoRenewalResult.OUTCOME_CONFLICT,
            'Failed to reactivate auto-renewal. Please try again or contact support.',
        )

    logger.info(f"Auto-renewal reactivated for subscription {subscription.id}, next billing {subscription.next_billing_date}")
    return AutoRenewalResult(
        AutoRenewalResult.OUTCOME_REACTIVATED,
        'Auto-renewal reactivated successfully. Your subscription will automatically renew.',
        subscription=subscription,
    )

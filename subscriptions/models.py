import math
import uuid
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.utils import timezone
from dateutil.relativedelta import relativedelta

from payments.models import PaymentType


def default_max_renewal_attempts():
    return getattr(settings, 'SUBSCRIPTION_MAX_RENEWAL_ATTEMPTS', 3)


def add_billing_cycle(value, billing_cycle='monthly'):
    """Advance a date by one billing cycle using calendar-month arithmetic"""
    if billing_cycle == 'yearly':
        return value + relativedelta(years=1)
    return value + relativedelta(months=1)


class Subscription(models.Model):
    """Recurring food subscription billed monthly through PayHere"""
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CANCELLED = 'cancelled'
    STATUS_EXPIRED = 'expired'
    STATUS_PENDING_RENEWAL = 'pending_renewal'
    STATUS_PAYMENT_FAILED = 'payment_failed'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_EXPIRED, 'Expired'),
        (STATUS_PENDING_RENEWAL, 'Pending Renewal'),
        (STATUS_PAYMENT_FAILED, 'Payment Failed'),
    ]

    BILLING_CYCLE_CHOICES = [
        ('monthly', 'Monthly'),
        ('yearly', 'Yearly'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment_type = models.CharField(max_length=20, choices=PaymentType.CHOICES, default=PaymentType.SUBSCRIPTION)

    # Customer details
    user_email = models.EmailField(db_index=True)
    customer_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=20, default='0771234567')
    address = models.TextField()

    # Plan
    plan_id = models.CharField(max_length=50, default='food_premium')
    plan_name = models.CharField(max_length=100, default='Premium Food Subscription')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('2500.00'), validators=[MinValueValidator(Decimal('0.00'))])
    currency = models.CharField(max_length=3, default='LKR')
    billing_cycle = models.CharField(max_length=20, choices=BILLING_CYCLE_CHOICES, default='monthly')

    # PayHere details
    payment_method = models.CharField(max_length=20, default='payhere')
    payhere_order_id = models.CharField(max_length=100, unique=True, null=True, blank=True)
    payhere_payment_id = models.CharField(max_length=100, blank=True, null=True)
    recurring_token = models.CharField(max_length=255, blank=True, null=True, db_index=True)

    # Auto-renewal
    auto_renew = models.BooleanField(default=True)
    renewal_attempts = models.PositiveIntegerField(default=0)
    max_renewal_attempts = models.PositiveIntegerField(default=default_max_renewal_attempts)

    # Payment failure tracking
    payment_failure = models.BooleanField(default=False)
    payment_failure_reason = models.CharField(max_length=255, blank=True, null=True)
    last_payment_failure_date = models.DateTimeField(null=True, blank=True)

    # Auto-renewal cancellation
    auto_renewal_cancelled_date = models.DateTimeField(null=True, blank=True)
    auto_renewal_cancelled_reason = models.CharField(max_length=255, blank=True, null=True)

    # Billing dates
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField(null=True, blank=True)
    next_billing_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'food_subscriptions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user_email', 'auto_renew'], name='food_subs_email_renew_idx'),
            models.Index(fields=['status', 'end_date'], name='food_subs_status_end_idx'),
            models.Index(fields=['next_billing_date'], name='food_subs_next_billing_idx'),
        ]

    def __str__(self):
        return f"{self.user_email} - {self.plan_name} - {self.status}"

    def save(self, *args, **kwargs):
        if self._state.adding and not self.end_date:
            self.end_date = add_billing_cycle(self.start_date or timezone.now(), self.billing_cycle)
            if not self.next_billing_date and self.auto_renew:
                self.next_billing_date = self.end_date
        super().save(*args, **kwargs)

    def is_active(self):
        """Active and still inside the paid period"""
        return self.status == self.STATUS_ACTIVE and (self.end_date is None or self.end_date > timezone.now())

    def is_expired(self):
        return self.end_date is not None and self.end_date <= timezone.now()

    def days_until_expiry(self):
        if self.end_date is None:
            return None
        seconds = (self.end_date - timezone.now()).total_seconds()
        return math.ceil(seconds / 86400)

    def has_exhausted_renewals(self):
        return self.renewal_attempts >= self.max_renewal_attempts

    def append_history(self, status, amount=None, payment_id=None, failure_reason=None, attempt=None, token=None):
        """Append an entry to the renewal ledger"""
        return RenewalHistoryEntry.objects.create(
            subscription=self,
            renewal_date=timezone.now(),
            amount=self.amount if amount is None else amount,
            status=status,
            payment_id=payment_id,
            failure_reason=failure_reason,
            attempt=attempt,
            payhere_token=token,
        )

    def log(self, action, **details):
        """Write an audit log entry for a state transition"""
        return SubscriptionLog.objects.create(
            subscription=self,
            user_email=self.user_email,
            action=action,
            details=details,
        )


class AppendOnlyModel(models.Model):
    """Rows are written once and never updated"""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError(f"{self.__class__.__name__} entries are append-only")
        super().save(*args, **kwargs)


class RenewalHistoryEntry(AppendOnlyModel):
    """One billing attempt on a subscription"""
    STATUS_SUCCESS = 'success'
    STATUS_FAILED = 'failed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_SUCCESS, 'Success'),
        (STATUS_FAILED, 'Failed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    subscription = models.ForeignKey(Subscription, on_delete=models.CASCADE, related_name='renewal_history')
    renewal_date = models.DateTimeField(default=timezone.now)
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    payment_id = models.CharField(max_length=100, blank=True, null=True)
    failure_reason = models.CharField(max_length=255, blank=True, null=True)
    attempt = models.PositiveIntegerField(null=True, blank=True)
    payhere_token = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        db_table = 'food_subscription_renewals'
        ordering = ['renewal_date', 'id']
        indexes = [
            models.Index(fields=['subscription', 'status'], name='food_renewals_sub_status_idx'),
        ]

    def __str__(self):
        return f"{self.subscription_id} - {self.status} - attempt {self.attempt}"


class SubscriptionLog(AppendOnlyModel):
    """Audit trail of subscription state transitions"""
    ACTION_CREATED = 'created'
    ACTION_RENEWED = 'renewed'
    ACTION_CANCELLED = 'cancelled'
    ACTION_FAILED = 'failed'
    ACTION_AUTO_RENEWAL_CANCELLED = 'auto_renewal_cancelled'
    ACTION_REACTIVATED = 'reactivated'

    ACTION_CHOICES = [
        (ACTION_CREATED, 'Created'),
        (ACTION_RENEWED, 'Renewed'),
        (ACTION_CANCELLED, 'Cancelled'),
        (ACTION_FAILED, 'Failed'),
        (ACTION_AUTO_RENEWAL_CANCELLED, 'Auto-renewal Cancelled'),
        (ACTION_REACTIVATED, 'Reactivated'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subscription = models.ForeignKey(Subscription, on_delete=models.PROTECT, related_name='logs')
    user_email = models.EmailField()
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'food_subscription_logs'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['subscription', 'timestamp'], name='food_logs_sub_time_idx'),
            models.Index(fields=['action'], name='food_logs_action_idx'),
        ]

    def __str__(self):
        return f"{self.user_email} - {self.action}"

import uuid
from django.db import models
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone


class PaymentType:
    """Commerce flow a gateway order belongs to, fixed when the order is created"""
    CART = 'CART'
    SUBSCRIPTION = 'SUBSCRIPTION'

    CHOICES = [
        (CART, 'Cart Order'),
        (SUBSCRIPTION, 'Subscription'),
    ]


class PaymentNotification(models.Model):
    """Authenticated PayHere notifications and how each one was handled"""
    STATUS_PENDING = 'PENDING'
    STATUS_PROCESSED = 'PROCESSED'
    STATUS_IGNORED = 'IGNORED'
    STATUS_FAILED = 'FAILED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSED, 'Processed'),
        (STATUS_IGNORED, 'Ignored'),
        (STATUS_FAILED, 'Failed'),
    ]

    ACTION_CHOICES = [
        ('ORDER_UPDATE', 'Order Update'),
        ('INITIAL_PAYMENT', 'Initial Subscription Payment'),
        ('RECURRING_PAYMENT', 'Recurring Subscription Payment'),
        ('FAILED_PAYMENT', 'Failed Subscription Payment'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_id = models.CharField(max_length=100, db_index=True)
    payment_id = models.CharField(max_length=100, blank=True)
    status_code = models.CharField(max_length=10)
    payment_type = models.CharField(max_length=20, choices=PaymentType.CHOICES, blank=True)
    action = models.CharField(max_length=30, choices=ACTION_CHOICES, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    error_message = models.TextField(blank=True, null=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payment_notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='payment_notif_status_idx'),
            models.Index(fields=['payment_type', 'action'], name='payment_notif_type_idx'),
        ]

    def __str__(self):
        return f"{self.order_id} - {self.status_code} - {self.status}"

    @property
    def is_success(self):
        return self.status_code == '2'

    def mark(self, status, error_message=None):
        """Record the final handling outcome"""
        self.status = status
        self.error_message = error_message
        self.processed_at = timezone.now()
        self.save(update_fields=['payment_type', 'action', 'status', 'error_message', 'processed_at'])

import uuid
from decimal import Decimal
from django.db import models
from django.core.validators import MinValueValidator

from payments.models import PaymentType


class CartOrder(models.Model):
    """One-time cart checkout paid through PayHere"""
    PAYMENT_STATUS_PENDING = 'pending'
    PAYMENT_STATUS_COMPLETED = 'completed'
    PAYMENT_STATUS_FAILED = 'failed'
    PAYMENT_STATUS_CANCELLED = 'cancelled'

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_STATUS_PENDING, 'Pending'),
        (PAYMENT_STATUS_COMPLETED, 'Completed'),
        (PAYMENT_STATUS_FAILED, 'Failed'),
        (PAYMENT_STATUS_CANCELLED, 'Cancelled'),
    ]

    ORDER_STATUS_PENDING = 'pending'
    ORDER_STATUS_CONFIRMED = 'confirmed'
    ORDER_STATUS_PROCESSING = 'processing'
    ORDER_STATUS_SHIPPED = 'shipped'
    ORDER_STATUS_DELIVERED = 'delivered'
    ORDER_STATUS_CANCELLED = 'cancelled'

    ORDER_STATUS_CHOICES = [
        (ORDER_STATUS_PENDING, 'Pending'),
        (ORDER_STATUS_CONFIRMED, 'Confirmed'),
        (ORDER_STATUS_PROCESSING, 'Processing'),
        (ORDER_STATUS_SHIPPED, 'Shipped'),
        (ORDER_STATUS_DELIVERED, 'Delivered'),
        (ORDER_STATUS_CANCELLED, 'Cancelled'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment_type = models.CharField(max_length=20, choices=PaymentType.CHOICES, default=PaymentType.CART)

    # Customer details
    customer_email = models.EmailField(db_index=True)
    customer_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=20)
    address = models.TextField()
    city = models.CharField(max_length=100, default='Colombo')

    # Order details
    order_id = models.CharField(max_length=100, unique=True)

    # Totals
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    currency = models.CharField(max_length=3, default='LKR')

    # PayHere details
    payment_method = models.CharField(max_length=20, default='payhere')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_STATUS_PENDING)
    payhere_order_id = models.CharField(max_length=100, unique=True)
    payhere_payment_id = models.CharField(max_length=100, blank=True, null=True)

    order_status = models.CharField(max_length=20, choices=ORDER_STATUS_CHOICES, default=ORDER_STATUS_PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['payment_status'], name='cart_orders_pay_status_idx'),
            models.Index(fields=['order_status'], name='cart_orders_ord_status_idx'),
        ]

    def __str__(self):
        return f"{self.order_id} - {self.customer_email} - {self.payment_status}"


class OrderItem(models.Model):
    """Line item of a cart order"""
    order = models.ForeignKey(CartOrder, on_delete=models.CASCADE, related_name='items')
    product_id = models.CharField(max_length=100)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'cart_order_items'
        ordering = ['id']

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"

    def save(self, *args, **kwargs):
        self.total_price = Decimal(self.price) * self.quantity
        super().save(*args, **kwargs)

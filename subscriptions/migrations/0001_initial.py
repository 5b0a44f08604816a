import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import subscriptions.models
import uuid
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "payment_type",
                    models.CharField(
                        choices=[("CART", "Cart Order"), ("SUBSCRIPTION", "Subscription")],
                        default="SUBSCRIPTION",
                        max_length=20,
                    ),
                ),
                ("user_email", models.EmailField(db_index=True, max_length=254)),
                ("customer_name", models.CharField(max_length=255)),
                ("phone_number", models.CharField(default="0771234567", max_length=20)),
                ("address", models.TextField()),
                ("plan_id", models.CharField(default="food_premium", max_length=50)),
                ("plan_name", models.CharField(default="Premium Food Subscription", max_length=100)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("inactive", "Inactive"),
                            ("cancelled", "Cancelled"),
                            ("expired", "Expired"),
                            ("pending_renewal", "Pending Renewal"),
                            ("payment_failed", "Payment Failed"),
                        ],
                        default="active",
                        max_length=20,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("2500.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("currency", models.CharField(default="LKR", max_length=3)),
                (
                    "billing_cycle",
                    models.CharField(
                        choices=[("monthly", "Monthly"), ("yearly", "Yearly")],
                        default="monthly",
                        max_length=20,
                    ),
                ),
                ("payment_method", models.CharField(default="payhere", max_length=20)),
                ("payhere_order_id", models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ("payhere_payment_id", models.CharField(blank=True, max_length=100, null=True)),
                ("recurring_token", models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ("auto_renew", models.BooleanField(default=True)),
                ("renewal_attempts", models.PositiveIntegerField(default=0)),
                (
                    "max_renewal_attempts",
                    models.PositiveIntegerField(default=subscriptions.models.default_max_renewal_attempts),
                ),
                ("payment_failure", models.BooleanField(default=False)),
                ("payment_failure_reason", models.CharField(blank=True, max_length=255, null=True)),
                ("last_payment_failure_date", models.DateTimeField(blank=True, null=True)),
                ("auto_renewal_cancelled_date", models.DateTimeField(blank=True, null=True)),
                ("auto_renewal_cancelled_reason", models.CharField(blank=True, max_length=255, null=True)),
                ("start_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("end_date", models.DateTimeField(blank=True, null=True)),
                ("next_billing_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "food_subscriptions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user_email", "auto_renew"], name="food_subs_email_renew_idx"),
                    models.Index(fields=["status", "end_date"], name="food_subs_status_end_idx"),
                    models.Index(fields=["next_billing_date"], name="food_subs_next_billing_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RenewalHistoryEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("renewal_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("success", "Success"), ("failed", "Failed"), ("cancelled", "Cancelled")],
                        max_length=20,
                    ),
                ),
                ("payment_id", models.CharField(blank=True, max_length=100, null=True)),
                ("failure_reason", models.CharField(blank=True, max_length=255, null=True)),
                ("attempt", models.PositiveIntegerField(blank=True, null=True)),
                ("payhere_token", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="renewal_history",
                        to="subscriptions.subscription",
                    ),
                ),
            ],
            options={
                "db_table": "food_subscription_renewals",
                "ordering": ["renewal_date", "id"],
                "indexes": [
                    models.Index(fields=["subscription", "status"], name="food_renewals_sub_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SubscriptionLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_email", models.EmailField(max_length=254)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("created", "Created"),
                            ("renewed", "Renewed"),
                            ("cancelled", "Cancelled"),
                            ("failed", "Failed"),
                            ("auto_renewal_cancelled", "Auto-renewal Cancelled"),
                            ("reactivated", "Reactivated"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "details",
                    models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder),
                ),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="logs",
                        to="subscriptions.subscription",
                    ),
                ),
            ],
            options={
                "db_table": "food_subscription_logs",
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["subscription", "timestamp"], name="food_logs_sub_time_idx"),
                    models.Index(fields=["action"], name="food_logs_action_idx"),
                ],
            },
        ),
    ]

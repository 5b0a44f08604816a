import django.core.serializers.json
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PaymentNotification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_id", models.CharField(db_index=True, max_length=100)),
                ("payment_id", models.CharField(blank=True, max_length=100)),
                ("status_code", models.CharField(max_length=10)),
                (
                    "payment_type",
                    models.CharField(
                        blank=True,
                        choices=[("CART", "Cart Order"), ("SUBSCRIPTION", "Subscription")],
                        max_length=20,
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("ORDER_UPDATE", "Order Update"),
                            ("INITIAL_PAYMENT", "Initial Subscription Payment"),
                            ("RECURRING_PAYMENT", "Recurring Subscription Payment"),
                            ("FAILED_PAYMENT", "Failed Subscription Payment"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PROCESSED", "Processed"),
                            ("IGNORED", "Ignored"),
                            ("FAILED", "Failed"),
                        ],
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("payload", models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "payment_notifications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="payment_notif_status_idx"),
                    models.Index(fields=["payment_type", "action"], name="payment_notif_type_idx"),
                ],
            },
        ),
    ]

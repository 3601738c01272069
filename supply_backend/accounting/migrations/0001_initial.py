from decimal import Decimal
import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "entity_type",
                    models.CharField(
                        choices=[("supplier", "Supplier"), ("buyer", "Buyer"), ("logistics", "Logistics")],
                        max_length=16,
                    ),
                ),
                ("entity_id", models.UUIDField(db_index=True)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase"),
                            ("payment", "Payment"),
                            ("sale", "Sale"),
                            ("receipt", "Receipt"),
                            ("return", "Return"),
                            ("adjustment", "Adjustment"),
                            ("charge", "Charge"),
                            ("credit_application", "Credit Application"),
                        ],
                        max_length=24,
                    ),
                ),
                (
                    "reference_model",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("DispatchOrder", "Dispatch Order"),
                            ("SupplierReturn", "Supplier Return"),
                            ("", "None"),
                        ],
                        default="",
                        max_length=32,
                    ),
                ),
                ("reference_id", models.UUIDField(blank=True, null=True)),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("remarks", models.TextField(blank=True, default="")),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[("cash", "Cash"), ("bank", "Bank"), ("", "None")],
                        default="",
                        max_length=8,
                    ),
                ),
                ("cash_payment", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("bank_payment", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ledger_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["date", "created_at"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id", "date"], name="ledger_entity_date_idx"),
                    models.Index(fields=["reference_model", "reference_id"], name="ledger_reference_idx"),
                    models.Index(fields=["transaction_type"], name="ledger_txn_type_idx"),
                    models.Index(fields=["created_at"], name="ledger_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                        name="chk_ledger_amounts_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(debit=0) | models.Q(credit=0),
                        name="chk_ledger_debit_xor_credit",
                    ),
                ],
            },
        ),
    ]

# accounting/models/ledger.py

"""
======================================================
PATH: accounting/models/ledger.py
======================================================
LEDGER ENTRY MODEL

One signed posting against one entity (supplier, buyer, logistics company).

Guarantees:
- Immutable once created (no updates, no deletes); corrections are new entries
- debit >= 0 and credit >= 0, never both nonzero
- Balance convention: balance = Σdebit − Σcredit
  positive → the business owes the entity
  negative → the entity owes the business (credit usable on future orders)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class LedgerEntry(models.Model):
    class EntityType(models.TextChoices):
        SUPPLIER = "supplier", "Supplier"
        BUYER = "buyer", "Buyer"
        LOGISTICS = "logistics", "Logistics"

    class TransactionType(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        PAYMENT = "payment", "Payment"
        SALE = "sale", "Sale"
        RECEIPT = "receipt", "Receipt"
        RETURN = "return", "Return"
        ADJUSTMENT = "adjustment", "Adjustment"
        CHARGE = "charge", "Charge"
        CREDIT_APPLICATION = "credit_application", "Credit Application"

    class ReferenceModel(models.TextChoices):
        DISPATCH_ORDER = "DispatchOrder", "Dispatch Order"
        SUPPLIER_RETURN = "SupplierReturn", "Supplier Return"
        NONE = "", "None"

    class PaymentMethod(models.TextChoices):
        CASH = "cash", "Cash"
        BANK = "bank", "Bank"
        NONE = "", "None"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entity_type = models.CharField(max_length=16, choices=EntityType.choices)
    entity_id = models.UUIDField(db_index=True)

    transaction_type = models.CharField(max_length=24, choices=TransactionType.choices)

    reference_model = models.CharField(
        max_length=32,
        choices=ReferenceModel.choices,
        blank=True,
        default=ReferenceModel.NONE,
    )
    reference_id = models.UUIDField(null=True, blank=True)

    debit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    date = models.DateTimeField(default=timezone.now)

    description = models.CharField(max_length=255, blank=True, default="")
    remarks = models.TextField(blank=True, default="")

    # Label only; no settlement integration
    payment_method = models.CharField(
        max_length=8,
        choices=PaymentMethod.choices,
        blank=True,
        default=PaymentMethod.NONE,
    )
    cash_payment = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    bank_payment = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        ordering = ["date", "created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id", "date"], name="ledger_entity_date_idx"),
            models.Index(fields=["reference_model", "reference_id"], name="ledger_reference_idx"),
            models.Index(fields=["transaction_type"], name="ledger_txn_type_idx"),
            models.Index(fields=["created_at"], name="ledger_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_ledger_amounts_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(debit=0) | Q(credit=0),
                name="chk_ledger_debit_xor_credit",
            ),
        ]

    def __str__(self):
        side = f"DR {self.debit}" if self.debit else f"CR {self.credit}"
        return f"{self.entity_type}:{self.entity_id} | {self.transaction_type} | {side}"

    @property
    def signed_amount(self) -> Decimal:
        return (self.debit or Decimal("0.00")) - (self.credit or Decimal("0.00"))

    def clean(self):
        if self.entity_type not in self.EntityType.values:
            raise ValidationError("Invalid entity_type")

        if not self.entity_id:
            raise ValidationError("entity_id is required")

        if self.debit is None or self.credit is None:
            raise ValidationError("debit and credit are required")

        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Ledger amounts must be >= 0")

        if self.debit > 0 and self.credit > 0:
            raise ValidationError("A ledger entry is either a debit or a credit, never both")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("LedgerEntry records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerEntry records are immutable and cannot be deleted")

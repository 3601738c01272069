# products/models/stock_movement.py

"""
CANONICAL INVENTORY AUDIT LOG

Immutable inventory movement row.

GUARANTEES:
- Append-only (no updates, no deletes)
- in / out / transfer quantities are strictly positive
- adjustment quantities carry their sign (reconciliation delta), never zero
- Each row carries the triggering reference (order, return, reconciliation)
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "in", "Stock In"
        OUT = "out", "Stock Out"
        ADJUSTMENT = "adjustment", "Adjustment"
        TRANSFER = "transfer", "Transfer"

    class Reference(models.TextChoices):
        DISPATCH_ORDER = "DispatchOrder", "Dispatch Order"
        SUPPLIER_RETURN = "SupplierReturn", "Supplier Return"
        VARIANT_REDUCTION = "VariantReduction", "Variant Reduction"
        STOCK_RECONCILIATION = "StockReconciliation", "Stock Reconciliation"
        MANUAL = "Manual", "Manual"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        "products.Product", on_delete=models.CASCADE, related_name="stock_movements"
    )
    batch = models.ForeignKey(
        "products.PurchaseBatch",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    movement_type = models.CharField(max_length=12, choices=MovementType.choices)

    # Signed only for ADJUSTMENT
    quantity = models.IntegerField()

    unit_cost_snapshot = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        default=None,
        help_text="Batch cost at movement time (immutable).",
    )

    reference = models.CharField(max_length=40, choices=Reference.choices, default=Reference.MANUAL)
    reference_id = models.UUIDField(null=True, blank=True, db_index=True)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="movement_product_created_idx"),
            models.Index(fields=["movement_type"], name="movement_type_idx"),
            models.Index(fields=["reference", "reference_id"], name="movement_reference_idx"),
        ]

    def clean(self):
        if self.quantity is None or self.quantity == 0:
            raise ValidationError("quantity cannot be zero")

        if self.movement_type != self.MovementType.ADJUSTMENT and self.quantity < 0:
            raise ValidationError(f"{self.movement_type} movements require a positive quantity")

        if self.batch_id and self.product_id:
            from products.models.stock_batch import PurchaseBatch

            batch_product_id = (
                PurchaseBatch.objects.filter(id=self.batch_id)
                .values_list("product_id", flat=True)
                .first()
            )
            if batch_product_id and batch_product_id != self.product_id:
                raise ValidationError("Batch does not belong to product")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def total_cost(self) -> Decimal:
        unit_cost = (
            self.unit_cost_snapshot
            if self.unit_cost_snapshot is not None
            else Decimal("0.00")
        )
        return unit_cost * Decimal(abs(int(self.quantity or 0)))

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity}"

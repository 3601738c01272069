# products/models/stock_batch.py

"""
PURCHASE BATCH (DELIVERY-BASED COSTING)

Represents ONE stock-in event with its own cost basis.

CANONICAL MODEL:
- PurchaseBatch = one delivery (usually one dispatch-order line)
- quantity, cost_price, landed_price, purchase_date are immutable after creation
- remaining_quantity is mutated ONLY via services (FIFO / targeted consumption)
- Consumed oldest purchase_date first
- Never deleted (historical audit trail)
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

IMMUTABLE_FIELDS = ("quantity", "cost_price", "landed_price", "purchase_date", "exchange_rate")


class PurchaseBatch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="purchase_batches",
    )

    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_batches",
    )

    # Reference only: the order collaborator lives in the purchases app
    dispatch_order_id = models.UUIDField(null=True, blank=True, db_index=True)

    batch_number = models.CharField(max_length=128, blank=True, default="")

    purchase_date = models.DateTimeField(default=timezone.now)

    quantity = models.PositiveIntegerField(help_text="Quantity received (immutable)")
    remaining_quantity = models.PositiveIntegerField(
        default=0,
        help_text="Remaining quantity (service-managed only)",
    )

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Supplier unit cost (basis for payment obligations).",
    )
    landed_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Unit cost after exchange rate and margin (valuation basis).",
    )
    exchange_rate = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("1.0000"),
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["purchase_date", "created_at"]
        indexes = [
            models.Index(fields=["product", "purchase_date"], name="batch_product_date_idx"),
            models.Index(fields=["product", "remaining_quantity"], name="batch_product_remaining_idx"),
            models.Index(fields=["supplier", "purchase_date"], name="batch_supplier_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_batch_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__gte=0),
                name="chk_batch_remaining_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__lte=F("quantity")),
                name="chk_batch_remaining_lte_quantity",
            ),
            models.CheckConstraint(
                condition=Q(cost_price__gte=0),
                name="chk_batch_cost_price_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(exchange_rate__gt=0),
                name="chk_batch_exchange_rate_gt_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})

        if self.remaining_quantity is None or self.remaining_quantity < 0:
            raise ValidationError({"remaining_quantity": "remaining_quantity cannot be negative"})

        if self.remaining_quantity > self.quantity:
            raise ValidationError(
                {"remaining_quantity": "remaining_quantity cannot exceed quantity"}
            )

        if self.cost_price is None or self.cost_price < Decimal("0.00"):
            raise ValidationError({"cost_price": "cost_price cannot be negative"})

        if self.exchange_rate is None or self.exchange_rate <= Decimal("0"):
            raise ValidationError({"exchange_rate": "exchange_rate must be greater than zero"})

    # -------------------------------------------------
    # IMMUTABILITY
    # -------------------------------------------------

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = PurchaseBatch.objects.only(*IMMUTABLE_FIELDS).get(pk=self.pk)
            for field in IMMUTABLE_FIELDS:
                if getattr(self, field) != getattr(original, field):
                    raise ValidationError({field: f"{field} is immutable"})

        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PurchaseBatch records are part of the audit trail and cannot be deleted")

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def is_exhausted(self) -> bool:
        return int(self.remaining_quantity or 0) <= 0

    @property
    def total_remaining_value(self) -> Decimal:
        return (self.cost_price or Decimal("0.00")) * Decimal(int(self.remaining_quantity or 0))

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.purchase_date:%Y-%m-%d} | {self.remaining_quantity}/{self.quantity}"

# products/models/inventory.py

"""
INVENTORY RECORD (ONE PER PRODUCT)

Aggregate stock view for a product.

GUARANTEES:
- current_stock is mutated ONLY via services (batch ledger / variants / reconcile)
- current_stock == sum(batch.remaining_quantity) within the sync tolerance
- available / needs_reorder / total_value are DERIVED, never stored
- The row doubles as the per-product lock (select_for_update) for every
  batch and variant mutation
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.db import models
from django.db.models import F, Q

TWOPLACES = Decimal("0.01")


class Inventory(models.Model):
    class StockStatus(models.TextChoices):
        IN_STOCK = "in_stock", "In Stock"
        LOW_STOCK = "low_stock", "Low Stock"
        OUT_OF_STOCK = "out_of_stock", "Out of Stock"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.OneToOneField(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="inventory",
    )

    current_stock = models.PositiveIntegerField(default=0)
    reserved_stock = models.PositiveIntegerField(default=0)

    average_cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Weighted average over remaining batch quantities.",
    )

    min_stock_level = models.PositiveIntegerField(default=0)
    max_stock_level = models.PositiveIntegerField(default=1000)
    reorder_level = models.PositiveIntegerField(default=10)
    reorder_quantity = models.PositiveIntegerField(default=0)

    # When True, variant quantities are expected to sum to current_stock
    variant_tracking = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    last_stock_update = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "Inventories"
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["current_stock"], name="inventory_stock_idx"),
            models.Index(fields=["is_active", "current_stock"], name="inventory_active_stock_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(average_cost_price__gte=0),
                name="chk_inventory_avg_cost_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(max_stock_level__gte=F("min_stock_level")),
                name="chk_inventory_max_gte_min",
            ),
        ]

    # -------------------------------------------------
    # DERIVED STATE
    # -------------------------------------------------

    @property
    def available_stock(self) -> int:
        return max(0, int(self.current_stock or 0) - int(self.reserved_stock or 0))

    @property
    def needs_reorder(self) -> bool:
        return int(self.current_stock or 0) <= int(self.reorder_level or 0)

    @property
    def total_value(self) -> Decimal:
        value = Decimal(int(self.current_stock or 0)) * (self.average_cost_price or Decimal("0.00"))
        return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)

    @property
    def stock_status(self) -> str:
        stock = int(self.current_stock or 0)
        if stock == 0:
            return self.StockStatus.OUT_OF_STOCK
        if stock <= int(self.reorder_level or 0):
            return self.StockStatus.LOW_STOCK
        return self.StockStatus.IN_STOCK

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | stock={self.current_stock}"

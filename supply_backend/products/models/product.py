# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


def build_sku(*, code: str, supplier_id=None) -> str:
    code = (code or "").strip().upper()
    if not supplier_id:
        return code
    return f"{str(supplier_id)[:8].upper()}-{code}"


class Product(models.Model):
    """
    Catalog entry for one supplier article.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Aggregate stock lives in Inventory (one per product)
    - Cost basis per delivery lives in PurchaseBatch

    cost_price is the single "current unit basis" the catalog exposes.
    Order confirmation overwrites it with the latest landed price.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="products",
    )

    # Supplier article code; unique per supplier
    code = models.CharField(max_length=128, db_index=True)
    sku = models.CharField(max_length=160, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    category = models.CharField(max_length=120, blank=True, default="")
    season = models.CharField(max_length=60, blank=True, default="")

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Current unit cost basis (latest landed price).",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["supplier", "code"], name="product_supplier_code_idx"),
            models.Index(fields=["is_active"], name="product_active_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["supplier", "code"],
                name="unique_product_code_per_supplier",
            ),
            models.CheckConstraint(
                condition=Q(cost_price__gte=0),
                name="chk_product_cost_price_gte_zero",
            ),
        ]

    def clean(self):
        self.code = (self.code or "").strip()
        if not self.code:
            raise ValidationError({"code": "code is required"})

        if self.cost_price is not None and self.cost_price < Decimal("0.00"):
            raise ValidationError({"cost_price": "cost_price cannot be negative"})

    def save(self, *args, **kwargs):
        if not (self.sku or "").strip():
            self.sku = build_sku(code=self.code, supplier_id=self.supplier_id)

        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.code})"

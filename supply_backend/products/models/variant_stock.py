# products/models/variant_stock.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q


class VariantStock(models.Model):
    """
    One (size, color) cell of a product's inventory.

    0 <= reserved_quantity <= quantity always holds.
    Mutated only by products.services.variants under the inventory row lock.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    inventory = models.ForeignKey(
        "products.Inventory",
        on_delete=models.CASCADE,
        related_name="variants",
    )

    size = models.CharField(max_length=32)
    color = models.CharField(max_length=64)

    quantity = models.PositiveIntegerField(default=0)
    reserved_quantity = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["color", "size"]
        constraints = [
            models.UniqueConstraint(
                fields=["inventory", "size", "color"],
                name="unique_variant_per_inventory",
            ),
            models.CheckConstraint(
                condition=Q(reserved_quantity__lte=F("quantity")),
                name="chk_variant_reserved_lte_quantity",
            ),
        ]

    @property
    def available_quantity(self) -> int:
        return int(self.quantity or 0) - int(self.reserved_quantity or 0)

    def clean(self):
        self.size = (self.size or "").strip()
        self.color = (self.color or "").strip()
        if not self.size or not self.color:
            raise ValidationError("size and color are required")
        if int(self.reserved_quantity or 0) > int(self.quantity or 0):
            raise ValidationError({"reserved_quantity": "reserved_quantity cannot exceed quantity"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.color}-{self.size}: {self.quantity} ({self.reserved_quantity} reserved)"

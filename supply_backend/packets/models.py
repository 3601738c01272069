# packets/models.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class PacketStock(models.Model):
    """
    One packet configuration for a product.

    - A packed row holds available_packets packets of items_per_packet items each,
      broken down by `composition` ([{size, color, quantity}]).
    - A loose row (is_loose=True) holds single items: items_per_packet == 1.

    Item total for the row = available_packets * items_per_packet.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="packet_stocks",
    )
    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="packet_stocks",
    )
    dispatch_order_id = models.UUIDField(null=True, blank=True, db_index=True)

    barcode = models.CharField(max_length=64, unique=True)

    composition = models.JSONField(default=list, blank=True)
    items_per_packet = models.PositiveIntegerField(default=1)

    available_packets = models.PositiveIntegerField(default=0)
    reserved_packets = models.PositiveIntegerField(default=0)
    sold_packets = models.PositiveIntegerField(default=0)

    is_loose = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["product", "is_active"], name="packet_product_active_idx"),
            models.Index(fields=["supplier", "product"], name="packet_supplier_product_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(items_per_packet__gt=0),
                name="chk_packet_items_per_packet_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(is_loose=False) | Q(items_per_packet=1),
                name="chk_packet_loose_single_item",
            ),
        ]

    @property
    def available_items(self) -> int:
        return int(self.available_packets or 0) * int(self.items_per_packet or 0)

    def clean(self):
        if self.composition and not self.is_loose:
            total = sum(int(row.get("quantity") or 0) for row in self.composition)
            if total != int(self.items_per_packet or 0):
                raise ValidationError(
                    {"composition": "composition quantities must add up to items_per_packet"}
                )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        kind = "loose" if self.is_loose else f"{self.items_per_packet}/packet"
        return f"{self.barcode} | {kind} | {self.available_packets} available"

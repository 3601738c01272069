# packets/selectors.py

"""
PACKET STOCK READS

Aggregates consumed by stock sync validation and low-stock alerts.
"""

from __future__ import annotations

from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from packets.models import PacketStock


def _product_id(product):
    return getattr(product, "pk", product)


def active_packets_for(product):
    return PacketStock.objects.filter(product_id=_product_id(product), is_active=True)


def packet_item_total(product) -> int:
    """Σ(available_packets × items_per_packet) over active rows."""
    total = active_packets_for(product).aggregate(
        total=Coalesce(Sum(F("available_packets") * F("items_per_packet")), 0)
    )["total"]
    return int(total or 0)


def packet_breakdown(product) -> list[dict]:
    return [
        {
            "packet_id": str(p.id),
            "barcode": p.barcode,
            "is_loose": p.is_loose,
            "items_per_packet": p.items_per_packet,
            "available_packets": p.available_packets,
            "available_items": p.available_items,
        }
        for p in active_packets_for(product).order_by("created_at")
    ]


def low_packet_stock(*, threshold: int):
    """
    Active rows with available_packets <= threshold. Loose rows count too:
    for them available_packets is the number of single items left.
    """
    return (
        PacketStock.objects.filter(
            is_active=True,
            available_packets__lte=threshold,
        )
        .select_related("product")
        .order_by("available_packets", "created_at")
    )

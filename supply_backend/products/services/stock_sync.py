# products/services/stock_sync.py

"""
STOCK SYNC VALIDATOR

Cross-checks the Inventory aggregate against:
- the packet-stock breakdown (packets app): validate_stock_sync / reconcile_stock
- its own batch breakdown: check_batch_consistency

Reporting is read-only. The only repair path is an explicit
reconcile_stock(source="packets"), which records the delta as an
ADJUSTMENT movement. The opposite direction is refused: an aggregate count
cannot be redistributed back into per-variant packet compositions.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction

from packets.selectors import low_packet_stock, packet_breakdown, packet_item_total
from products.models import Inventory, StockMovement
from products.services.exceptions import (
    InventoryNotFoundError,
    UnsupportedReconciliationDirectionError,
)
from products.services.inventory import batch_total, lock_inventory, touch
from products.services.variants import variant_total

logger = logging.getLogger("inventory")

SOURCE_PACKETS = "packets"
SOURCE_INVENTORY = "inventory"

SEVERITY_CRITICAL = "critical"
SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"


def _tolerance() -> int:
    return int(getattr(settings, "STOCK_SYNC_TOLERANCE", 1))


def _get_inventory(product) -> Inventory:
    try:
        return Inventory.objects.select_related("product").get(
            product_id=getattr(product, "pk", product)
        )
    except Inventory.DoesNotExist as exc:
        raise InventoryNotFoundError(
            f"No inventory record for product {getattr(product, 'pk', product)}"
        ) from exc


def validate_stock_sync(product) -> dict:
    inventory = _get_inventory(product)

    inventory_stock = int(inventory.current_stock or 0)
    packet_items = packet_item_total(inventory.product_id)
    difference = inventory_stock - packet_items
    is_valid = abs(difference) <= _tolerance()

    if is_valid:
        message = "Inventory and packet stock are in sync"
    elif difference > 0:
        message = f"Inventory has {difference} more item(s) than packet stock"
    else:
        message = f"Packet stock has {-difference} more item(s) than inventory"

    return {
        "product_id": str(inventory.product_id),
        "is_valid": is_valid,
        "inventory_stock": inventory_stock,
        "packet_stock_items": packet_items,
        "difference": difference,
        "message": message,
        "packet_details": packet_breakdown(inventory.product_id),
    }


def check_batch_consistency(product) -> dict:
    """
    current_stock == Σ(batch.remaining_quantity) within tolerance;
    variant sum is reported alongside when variant tracking is on.
    """
    inventory = _get_inventory(product)

    current = int(inventory.current_stock or 0)
    batches = batch_total(inventory.product_id)
    difference = current - batches

    result = {
        "product_id": str(inventory.product_id),
        "current_stock": current,
        "batch_total": batches,
        "difference": difference,
        "is_consistent": abs(difference) <= _tolerance(),
    }

    if inventory.variant_tracking:
        variants = variant_total(inventory.product_id)
        result["variant_total"] = variants
        result["variants_consistent"] = variants == current

    return result


@transaction.atomic
def reconcile_stock(product, *, source: str = SOURCE_PACKETS, user=None) -> dict:
    source = (source or "").strip().lower()

    if source == SOURCE_INVENTORY:
        raise UnsupportedReconciliationDirectionError(
            "Cannot reconcile packets from inventory: an aggregate count cannot be "
            "redistributed into packet compositions. Use source='packets'."
        )
    if source != SOURCE_PACKETS:
        raise UnsupportedReconciliationDirectionError(
            f"Unknown reconciliation source: {source!r}"
        )

    inventory = lock_inventory(product)

    before = int(inventory.current_stock or 0)
    target = packet_item_total(inventory.product_id)
    delta = target - before

    if delta == 0:
        return {
            "product_id": str(inventory.product_id),
            "adjusted": False,
            "previous_stock": before,
            "new_stock": before,
            "adjustment": 0,
        }

    inventory.current_stock = target
    touch(inventory, "current_stock")

    StockMovement.objects.create(
        product_id=inventory.product_id,
        movement_type=StockMovement.MovementType.ADJUSTMENT,
        quantity=delta,
        reference=StockMovement.Reference.STOCK_RECONCILIATION,
        performed_by=user,
        notes=f"Stock reconciliation from packets: {before} -> {target}",
    )

    logger.warning(
        "Inventory reconciled from packet stock",
        extra={
            "product_id": str(inventory.product_id),
            "previous_stock": before,
            "new_stock": target,
            "adjustment": delta,
        },
    )

    return {
        "product_id": str(inventory.product_id),
        "adjusted": True,
        "previous_stock": before,
        "new_stock": target,
        "adjustment": delta,
    }


def _inventory_severity(stock: int, reorder_level: int) -> str | None:
    if stock == 0:
        return SEVERITY_CRITICAL
    if stock <= reorder_level / 2:
        return SEVERITY_HIGH
    if stock <= reorder_level:
        return SEVERITY_MEDIUM
    return None


def _packet_severity(available: int) -> str:
    if available == 0:
        return SEVERITY_CRITICAL
    if available <= 2:
        return SEVERITY_HIGH
    return SEVERITY_MEDIUM


def get_low_stock_alerts(*, threshold: int | None = None, include_packets: bool = True) -> dict:
    """
    Read-only scan.

    Inventory tiers use each record's reorder_level:
      critical (stock = 0), high (stock <= reorder/2), medium (stock <= reorder).
    Packet tiers use `threshold` (default settings.PACKET_LOW_STOCK_THRESHOLD):
      critical (0 packets), high (<= 2), medium (<= threshold).
    """
    packet_threshold = (
        int(threshold)
        if threshold is not None
        else int(getattr(settings, "PACKET_LOW_STOCK_THRESHOLD", 5))
    )

    inventory_alerts = []
    records = (
        Inventory.objects.filter(is_active=True)
        .select_related("product")
        .order_by("current_stock")
    )
    for inv in records:
        stock = int(inv.current_stock or 0)
        severity = _inventory_severity(stock, int(inv.reorder_level or 0))
        if severity is None:
            continue
        inventory_alerts.append(
            {
                "product_id": str(inv.product_id),
                "product_name": inv.product.name,
                "product_code": inv.product.code,
                "current_stock": stock,
                "reorder_level": inv.reorder_level,
                "severity": severity,
            }
        )

    packet_alerts = []
    if include_packets:
        for packet in low_packet_stock(threshold=packet_threshold):
            packet_alerts.append(
                {
                    "packet_id": str(packet.id),
                    "barcode": packet.barcode,
                    "is_loose": packet.is_loose,
                    "product_id": str(packet.product_id),
                    "product_name": packet.product.name,
                    "available_packets": packet.available_packets,
                    "severity": _packet_severity(int(packet.available_packets)),
                }
            )

    def _count(rows, severity):
        return sum(1 for r in rows if r["severity"] == severity)

    return {
        "inventory": inventory_alerts,
        "packets": packet_alerts,
        "summary": {
            SEVERITY_CRITICAL: _count(inventory_alerts, SEVERITY_CRITICAL) + _count(packet_alerts, SEVERITY_CRITICAL),
            SEVERITY_HIGH: _count(inventory_alerts, SEVERITY_HIGH) + _count(packet_alerts, SEVERITY_HIGH),
            SEVERITY_MEDIUM: _count(inventory_alerts, SEVERITY_MEDIUM) + _count(packet_alerts, SEVERITY_MEDIUM),
        },
    }

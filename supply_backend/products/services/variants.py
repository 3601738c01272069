# products/services/variants.py

"""
VARIANT COMPOSITION SERVICE

Quantity per (size, color) cell, updated in lockstep with the aggregate
Inventory counters under the same per-product lock.

Operations:
- reserve_variant(): hold units for a pending sale / dispatch
- release_variant(): give a hold back
- reduce_variant(): units physically leave (also reduces current_stock + audit row)
- merge_incoming_variants(): fold a stock-in composition into existing cells
- deduct_variant_cells(): returned units leave their cells (aggregate untouched)

Invariant: 0 <= reserved_quantity <= quantity per cell (clamped, never negative).
The sum of variant quantities vs current_stock is advisory and reported by
stock_sync, not enforced here.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce

from products.models import StockMovement, VariantStock
from products.services.costing import to_positive_qty
from products.services.exceptions import (
    InsufficientStockError,
    InsufficientVariantStockError,
    InvalidQuantityError,
    VariantNotFoundError,
)
from products.services.inventory import lock_inventory, touch

logger = logging.getLogger("inventory")


def _norm(value) -> str:
    return str(value or "").strip()


def _locked_variant(inventory, *, size, color) -> VariantStock:
    try:
        return VariantStock.objects.select_for_update().get(
            inventory=inventory, size=_norm(size), color=_norm(color)
        )
    except VariantStock.DoesNotExist as exc:
        raise VariantNotFoundError(
            f"Variant {_norm(color)}-{_norm(size)} not found for product {inventory.product_id}"
        ) from exc


@transaction.atomic
def reserve_variant(*, product, size, color, quantity) -> VariantStock:
    qty = to_positive_qty(quantity)
    inventory = lock_inventory(product)
    variant = _locked_variant(inventory, size=size, color=color)

    if variant.available_quantity < qty:
        raise InsufficientVariantStockError(
            f"Insufficient stock for {variant.color}-{variant.size}. "
            f"Available: {variant.available_quantity}, Requested: {qty}"
        )

    variant.reserved_quantity = int(variant.reserved_quantity) + qty
    variant.save(update_fields=["reserved_quantity", "updated_at"])

    inventory.reserved_stock = int(inventory.reserved_stock or 0) + qty
    touch(inventory, "reserved_stock")

    return variant


@transaction.atomic
def release_variant(*, product, size, color, quantity) -> VariantStock:
    qty = to_positive_qty(quantity)
    inventory = lock_inventory(product)
    variant = _locked_variant(inventory, size=size, color=color)

    released = min(qty, int(variant.reserved_quantity))
    variant.reserved_quantity = int(variant.reserved_quantity) - released
    variant.save(update_fields=["reserved_quantity", "updated_at"])

    inventory.reserved_stock = max(0, int(inventory.reserved_stock or 0) - released)
    touch(inventory, "reserved_stock")

    return variant


@transaction.atomic
def reduce_variant(
    *,
    product,
    size,
    color,
    quantity,
    user=None,
    reference_id=None,
) -> VariantStock:
    """
    Units leave the cell: quantity, reserved (clamped at zero) and the
    aggregate current_stock / reserved_stock all drop; one OUT movement
    noted "Variant: <color>-<size>".
    """
    qty = to_positive_qty(quantity)
    inventory = lock_inventory(product)
    variant = _locked_variant(inventory, size=size, color=color)

    if int(variant.quantity) < qty:
        raise InsufficientVariantStockError(
            f"Insufficient stock for {variant.color}-{variant.size}. "
            f"On hand: {variant.quantity}, Requested: {qty}"
        )

    if int(inventory.current_stock or 0) < qty:
        raise InsufficientStockError(
            f"Insufficient aggregate stock for product {inventory.product_id}. "
            f"Current: {inventory.current_stock}, Requested: {qty}"
        )

    reserved_drop = min(qty, int(variant.reserved_quantity))
    variant.quantity = int(variant.quantity) - qty
    variant.reserved_quantity = int(variant.reserved_quantity) - reserved_drop
    variant.save(update_fields=["quantity", "reserved_quantity", "updated_at"])

    inventory.current_stock = int(inventory.current_stock) - qty
    inventory.reserved_stock = max(0, int(inventory.reserved_stock or 0) - reserved_drop)
    touch(inventory, "current_stock", "reserved_stock")

    StockMovement.objects.create(
        product_id=inventory.product_id,
        movement_type=StockMovement.MovementType.OUT,
        quantity=qty,
        reference=StockMovement.Reference.VARIANT_REDUCTION,
        reference_id=reference_id,
        performed_by=user,
        notes=f"Variant: {variant.color}-{variant.size}",
    )

    logger.info(
        "Variant stock reduced",
        extra={
            "product_id": str(inventory.product_id),
            "size": variant.size,
            "color": variant.color,
            "quantity": qty,
        },
    )

    return variant


def normalize_composition(composition) -> list[dict]:
    """
    Collapse [{size, color, quantity}, ...] into one entry per (size, color).
    Rejects rows with missing size/color or non-positive quantity.
    """
    merged: dict[tuple[str, str], int] = {}
    for row in composition or []:
        size = _norm(row.get("size"))
        color = _norm(row.get("color"))
        if not size or not color:
            raise InvalidQuantityError("variant composition rows need size and color")
        qty = to_positive_qty(row.get("quantity"))
        merged[(size, color)] = merged.get((size, color), 0) + qty

    return [{"size": s, "color": c, "quantity": q} for (s, c), q in merged.items()]


@transaction.atomic
def merge_incoming_variants(*, product, composition) -> list[VariantStock]:
    """
    Fold an incoming stock-in composition into the product's variant cells:
    existing (size, color) cells are summed, new ones appended.

    Aggregate current_stock is NOT touched here; the batch ledger owns it.
    """
    rows = normalize_composition(composition)
    if not rows:
        return []

    inventory = lock_inventory(product, create=True)

    touched = []
    for row in rows:
        variant, created = VariantStock.objects.select_for_update().get_or_create(
            inventory=inventory,
            size=row["size"],
            color=row["color"],
            defaults={"quantity": row["quantity"]},
        )
        if not created:
            variant.quantity = int(variant.quantity) + row["quantity"]
            variant.save(update_fields=["quantity", "updated_at"])
        touched.append(variant)

    if not inventory.variant_tracking:
        inventory.variant_tracking = True
        inventory.save(update_fields=["variant_tracking", "updated_at"])

    return touched


def variant_total(product) -> int:
    total = VariantStock.objects.filter(
        inventory__product_id=getattr(product, "pk", product)
    ).aggregate(total=Coalesce(Sum("quantity"), 0))["total"]
    return int(total or 0)


@transaction.atomic
def deduct_variant_cells(*, product, cells) -> list[VariantStock]:
    """
    Take returned units off their (size, color) cells.

    The batch ledger has already lowered current_stock and written the
    movement; only the cells change here. Units whose cell is unknown (loose
    stock that never had a composition) were never merged into a cell, so
    there is nothing to take for them. Each cell is clamped at zero and
    reserved_quantity never exceeds what is left.
    """
    rows = normalize_composition(cells)
    if not rows:
        return []

    inventory = lock_inventory(product)
    if not inventory.variant_tracking:
        return []

    touched = []
    reserved_drop = 0
    for row in rows:
        variant = (
            VariantStock.objects.select_for_update()
            .filter(inventory=inventory, size=row["size"], color=row["color"])
            .first()
        )
        if variant is None:
            logger.warning(
                "Returned units have no variant cell",
                extra={"product_id": str(inventory.product_id), "size": row["size"], "color": row["color"]},
            )
            continue

        taken = min(row["quantity"], int(variant.quantity))
        variant.quantity = int(variant.quantity) - taken
        reserved = min(int(variant.reserved_quantity), variant.quantity)
        reserved_drop += int(variant.reserved_quantity) - reserved
        variant.reserved_quantity = reserved
        variant.save(update_fields=["quantity", "reserved_quantity", "updated_at"])
        touched.append(variant)

        if taken < row["quantity"]:
            logger.warning(
                "Variant cell could not absorb full return",
                extra={
                    "product_id": str(inventory.product_id),
                    "size": variant.size,
                    "color": variant.color,
                    "requested": row["quantity"],
                    "taken": taken,
                },
            )

    if reserved_drop:
        inventory.reserved_stock = max(0, int(inventory.reserved_stock or 0) - reserved_drop)
        touch(inventory, "reserved_stock")

    return touched

# products/services/stock_intake.py

"""
STOCK INTAKE (BATCH LEDGER: ADD)

Purpose:
- Intake stock ONLY as a new PurchaseBatch (one delivery, own cost basis).
- Increment Inventory.current_stock and recompute the weighted average cost
  over ALL batches (not incrementally).
- Produce a matching StockMovement(IN) audit row.
- Keep everything atomic under the per-product inventory lock.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from products.models import PurchaseBatch, StockMovement
from products.services.costing import to_positive_qty, weighted_average_cost
from products.services.exceptions import InvalidQuantityError
from products.services.inventory import lock_inventory, touch

logger = logging.getLogger("inventory")

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@transaction.atomic
def add_batch(
    *,
    product,
    quantity,
    cost_price,
    landed_price=None,
    supplier=None,
    purchase_date=None,
    exchange_rate=Decimal("1"),
    dispatch_order_id=None,
    batch_number: str = "",
    user=None,
    notes: str = "",
) -> PurchaseBatch:
    qty = to_positive_qty(quantity)

    cost = _money(cost_price)
    if cost < Decimal("0.00"):
        raise InvalidQuantityError("cost_price cannot be negative")

    landed = _money(landed_price) if landed_price not in (None, "") else cost

    inventory = lock_inventory(product, create=True)

    batch = PurchaseBatch.objects.create(
        product_id=inventory.product_id,
        supplier_id=getattr(supplier, "pk", supplier),
        dispatch_order_id=dispatch_order_id,
        batch_number=(batch_number or "").strip(),
        purchase_date=purchase_date or timezone.now(),
        quantity=qty,
        remaining_quantity=qty,
        cost_price=cost,
        landed_price=landed,
        exchange_rate=Decimal(str(exchange_rate or "1")),
    )

    inventory.current_stock = int(inventory.current_stock or 0) + qty
    inventory.average_cost_price = weighted_average_cost(
        PurchaseBatch.objects.filter(product_id=inventory.product_id).only(
            "remaining_quantity", "cost_price"
        ),
        fallback=cost,
    )
    touch(inventory, "current_stock", "average_cost_price")

    StockMovement.objects.create(
        product_id=inventory.product_id,
        batch=batch,
        movement_type=StockMovement.MovementType.IN,
        quantity=qty,
        unit_cost_snapshot=cost,
        reference=(
            StockMovement.Reference.DISPATCH_ORDER
            if dispatch_order_id
            else StockMovement.Reference.MANUAL
        ),
        reference_id=dispatch_order_id,
        performed_by=user,
        notes=notes or "",
    )

    logger.info(
        "Batch added",
        extra={
            "product_id": str(inventory.product_id),
            "batch_id": str(batch.id),
            "quantity": qty,
            "cost_price": str(cost),
            "current_stock": inventory.current_stock,
            "average_cost_price": str(inventory.average_cost_price),
        },
    )

    return batch

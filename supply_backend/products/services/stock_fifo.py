# products/services/stock_fifo.py

"""
FIFO STOCK ENGINE (BATCH LEDGER: CONSUME)

Purpose:
- consume_fifo(): deduct stock oldest purchase_date first across batches,
  returning per-batch cost details and the total cost.
- consume_from_batch(): targeted deduction from one batch (batch-aware returns).

Concurrency:
- Both run inside transaction.atomic and take the per-product inventory lock
  BEFORE reading batches, so read-mutate-recompute cannot interleave.

Audit:
- Every deduction writes one StockMovement(OUT) per batch touched, carrying
  the batch cost snapshot and the triggering reference.

Targeted over-request (quantity > batch remainder):
- Default: consume what remains, flag the result as clamped, log a WARNING.
- settings.INVENTORY_STRICT_BATCH_CONSUMPTION=True: raise BatchQuantityExceededError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings
from django.db import transaction

from products.models import PurchaseBatch, StockMovement
from products.services.costing import (
    BatchAllocation,
    FifoPlan,
    plan_fifo_consumption,
    to_positive_qty,
    weighted_average_cost,
)
from products.services.exceptions import (
    BatchExhaustionError,
    BatchNotFoundError,
    BatchQuantityExceededError,
    InsufficientStockError,
)
from products.services.inventory import lock_inventory, touch

logger = logging.getLogger("inventory")


@dataclass(frozen=True)
class FifoConsumption:
    product_id: object
    plan: FifoPlan
    movements: list = field(default_factory=list)

    @property
    def cost_details(self) -> list[BatchAllocation]:
        return self.plan.allocations

    @property
    def total_cost(self) -> Decimal:
        return self.plan.total_cost

    @property
    def average_cost_per_unit(self) -> Decimal:
        return self.plan.average_cost_per_unit


@dataclass(frozen=True)
class BatchConsumption:
    batch: PurchaseBatch
    quantity_requested: int
    quantity_taken: int
    clamped: bool
    movement: StockMovement | None = None

    @property
    def cost_price(self) -> Decimal:
        return self.batch.cost_price

    @property
    def landed_price(self) -> Decimal:
        return self.batch.landed_price


def _recompute_average(inventory) -> None:
    inventory.average_cost_price = weighted_average_cost(
        PurchaseBatch.objects.filter(product_id=inventory.product_id).only(
            "remaining_quantity", "cost_price"
        ),
        fallback=inventory.average_cost_price,
    )


@transaction.atomic
def consume_fifo(
    *,
    product,
    quantity,
    user=None,
    reference: str = StockMovement.Reference.MANUAL,
    reference_id=None,
    supplier=None,
    notes: str = "",
) -> FifoConsumption:
    """
    Deduct `quantity` units oldest-batch-first.

    supplier (optional) restricts the walk to that supplier's batches
    (supplier returns must only give back what that supplier delivered).
    """
    qty = to_positive_qty(quantity)

    inventory = lock_inventory(product)

    available = inventory.available_stock
    if qty > available:
        raise InsufficientStockError(
            f"Insufficient stock for product {inventory.product_id}. "
            f"Available: {available}, Requested: {qty}"
        )

    batches_qs = PurchaseBatch.objects.select_for_update().filter(
        product_id=inventory.product_id,
        remaining_quantity__gt=0,
    )
    if supplier is not None:
        batches_qs = batches_qs.filter(supplier_id=getattr(supplier, "pk", supplier))

    batches = list(batches_qs.order_by("purchase_date", "created_at"))

    if supplier is not None:
        supplier_available = sum(int(b.remaining_quantity) for b in batches)
        if qty > supplier_available:
            raise InsufficientStockError(
                f"Insufficient stock from supplier for product {inventory.product_id}. "
                f"Available: {supplier_available}, Requested: {qty}"
            )

    try:
        plan = plan_fifo_consumption(batches, qty)
    except BatchExhaustionError:
        logger.error(
            "FIFO batch exhaustion after passed availability check",
            extra={
                "product_id": str(inventory.product_id),
                "requested": qty,
                "current_stock": inventory.current_stock,
                "batch_remaining": sum(int(b.remaining_quantity) for b in batches),
            },
        )
        raise

    by_id = {b.id: b for b in batches}
    movements = []
    for alloc in plan.allocations:
        batch = by_id[alloc.batch_id]
        batch.remaining_quantity = int(batch.remaining_quantity) - alloc.quantity_taken
        batch.save(update_fields=["remaining_quantity"])

        movements.append(
            StockMovement.objects.create(
                product_id=inventory.product_id,
                batch=batch,
                movement_type=StockMovement.MovementType.OUT,
                quantity=alloc.quantity_taken,
                unit_cost_snapshot=alloc.cost_price,
                reference=reference,
                reference_id=reference_id,
                performed_by=user,
                notes=notes or "",
            )
        )

    inventory.current_stock = int(inventory.current_stock) - qty
    _recompute_average(inventory)
    touch(inventory, "current_stock", "average_cost_price")

    logger.info(
        "FIFO consumption",
        extra={
            "product_id": str(inventory.product_id),
            "quantity": qty,
            "batches": len(plan.allocations),
            "total_cost": str(plan.total_cost),
            "current_stock": inventory.current_stock,
        },
    )

    return FifoConsumption(product_id=inventory.product_id, plan=plan, movements=movements)


@transaction.atomic
def consume_from_batch(
    *,
    product,
    batch_id,
    quantity,
    user=None,
    reference: str = StockMovement.Reference.SUPPLIER_RETURN,
    reference_id=None,
    notes: str = "",
) -> BatchConsumption:
    qty = to_positive_qty(quantity)

    inventory = lock_inventory(product)

    try:
        batch = PurchaseBatch.objects.select_for_update().get(
            id=batch_id, product_id=inventory.product_id
        )
    except PurchaseBatch.DoesNotExist as exc:
        raise BatchNotFoundError(
            f"Batch {batch_id} not found for product {inventory.product_id}"
        ) from exc

    remaining = int(batch.remaining_quantity or 0)
    taken = qty
    clamped = False

    if qty > remaining:
        if getattr(settings, "INVENTORY_STRICT_BATCH_CONSUMPTION", False):
            raise BatchQuantityExceededError(
                f"Batch {batch.id} has {remaining} remaining, requested {qty}"
            )
        taken = remaining
        clamped = True
        logger.warning(
            "Targeted batch consumption clamped to remaining quantity",
            extra={
                "product_id": str(inventory.product_id),
                "batch_id": str(batch.id),
                "requested": qty,
                "remaining": remaining,
            },
        )

    if taken <= 0:
        return BatchConsumption(
            batch=batch,
            quantity_requested=qty,
            quantity_taken=0,
            clamped=clamped,
        )

    batch.remaining_quantity = remaining - taken
    batch.save(update_fields=["remaining_quantity"])

    current = int(inventory.current_stock or 0)
    if taken > current:
        logger.warning(
            "Inventory aggregate below batch remainder; flooring current_stock at zero",
            extra={
                "product_id": str(inventory.product_id),
                "current_stock": current,
                "taken": taken,
            },
        )
    inventory.current_stock = max(0, current - taken)
    _recompute_average(inventory)
    touch(inventory, "current_stock", "average_cost_price")

    movement = StockMovement.objects.create(
        product_id=inventory.product_id,
        batch=batch,
        movement_type=StockMovement.MovementType.OUT,
        quantity=taken,
        unit_cost_snapshot=batch.cost_price,
        reference=reference,
        reference_id=reference_id,
        performed_by=user,
        notes=notes or "",
    )

    return BatchConsumption(
        batch=batch,
        quantity_requested=qty,
        quantity_taken=taken,
        clamped=clamped,
        movement=movement,
    )

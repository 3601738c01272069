# products/services/costing.py

"""
FIFO COSTING (PURE)

No database access. Functions take any batch-like objects exposing:
- id, purchase_date, remaining_quantity, cost_price
- optionally landed_price, supplier_id

The DB-facing services (stock_intake, stock_fifo) load batches under the
inventory lock, call these functions, then persist the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from products.services.exceptions import BatchExhaustionError, InvalidQuantityError

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if value is None or value == "":
        raise InvalidQuantityError("quantity is required")

    if isinstance(value, bool):
        raise InvalidQuantityError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return int(s)

    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)

    raise InvalidQuantityError("quantity must be a whole integer unit")


def to_positive_qty(value) -> int:
    qty = to_int_qty(value)
    if qty <= 0:
        raise InvalidQuantityError("quantity must be greater than zero")
    return qty


@dataclass(frozen=True)
class BatchAllocation:
    batch_id: object
    quantity_taken: int
    cost_price: Decimal
    landed_price: Decimal
    supplier_id: object = None

    @property
    def line_cost(self) -> Decimal:
        return _money(self.cost_price * self.quantity_taken)


@dataclass(frozen=True)
class FifoPlan:
    allocations: list[BatchAllocation] = field(default_factory=list)

    @property
    def quantity(self) -> int:
        return sum(a.quantity_taken for a in self.allocations)

    @property
    def total_cost(self) -> Decimal:
        return _money(sum((a.line_cost for a in self.allocations), Decimal("0.00")))

    @property
    def average_cost_per_unit(self) -> Decimal:
        qty = self.quantity
        if qty <= 0:
            return Decimal("0.00")
        return _money(self.total_cost / qty)


def fifo_order(batches: Iterable) -> list:
    """Unexhausted batches, oldest purchase_date first (stable for equal dates)."""
    live = [b for b in batches if int(b.remaining_quantity or 0) > 0]
    return sorted(live, key=lambda b: b.purchase_date)


def plan_fifo_consumption(batches: Iterable, quantity: int) -> FifoPlan:
    """
    Walk batches oldest-first taking min(remaining, still_needed) from each.

    Raises BatchExhaustionError if batches run out before the request is met.
    Callers check aggregate availability first; reaching this error means the
    aggregate and the batch breakdown disagree.
    """
    needed = to_positive_qty(quantity)
    allocations: list[BatchAllocation] = []

    for batch in fifo_order(batches):
        if needed <= 0:
            break

        take = min(int(batch.remaining_quantity), needed)
        allocations.append(
            BatchAllocation(
                batch_id=batch.id,
                quantity_taken=take,
                cost_price=_money(batch.cost_price),
                landed_price=_money(getattr(batch, "landed_price", None) or batch.cost_price),
                supplier_id=getattr(batch, "supplier_id", None),
            )
        )
        needed -= take

    if needed > 0:
        raise BatchExhaustionError(
            f"FIFO walk exhausted all batches with {needed} unit(s) still needed"
        )

    return FifoPlan(allocations=allocations)


def weighted_average_cost(batches: Iterable, *, fallback=None) -> Decimal | None:
    """
    Σ(remaining · cost) / Σ(remaining) over ALL batches.

    When nothing remains, returns `fallback` (the incoming cost on stock-in,
    or the previous average on consumption).
    """
    total_qty = 0
    total_value = Decimal("0.00")

    for batch in batches:
        remaining = int(batch.remaining_quantity or 0)
        if remaining <= 0:
            continue
        total_qty += remaining
        total_value += Decimal(remaining) * Decimal(str(batch.cost_price))

    if total_qty <= 0:
        return _money(fallback) if fallback is not None else None

    return _money(total_value / total_qty)

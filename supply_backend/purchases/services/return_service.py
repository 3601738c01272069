# purchases/services/return_service.py

"""
======================================================
PATH: purchases/services/return_service.py
======================================================
SUPPLIER RETURN SERVICE

Two entry points, both atomic:

create_order_return()
- lines of one dispatch order
- pending order: quantities only (the later confirmation takes ordered − returned)
- confirmed order: deduct from the line's own batch (clamped unless strict),
  remove packet items (breaking a packet when needed) and their variant
  cells, credit the supplier at supplier cost_price

create_product_return()
- any units of a product from a supplier, consumed FIFO across that
  supplier's batches, packet items and variant cells removed the same way,
  credited at the FIFO cost
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from accounting.services.posting import record_return
from packets.services import remove_items
from products.models import Product, StockMovement
from products.services.costing import to_positive_qty
from products.services.stock_fifo import consume_fifo, consume_from_batch
from products.services.variants import deduct_variant_cells
from purchases.models import DispatchOrder, SupplierReturn, SupplierReturnItem
from purchases.selectors import returned_quantities
from purchases.services.exceptions import SupplierReturnError
from purchases.services.locking import lock_dispatch_order, lock_supplier
from suppliers.models import Supplier

logger = logging.getLogger("purchases")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _requested_lines(items) -> list[dict]:
    if not items:
        raise SupplierReturnError("At least one return line is required")
    return list(items)


@transaction.atomic
def create_order_return(*, order_id, items, reason: str = "", user=None) -> SupplierReturn:
    """
    items: [{"item_id": <DispatchOrderItem id>, "quantity": n}, ...]
    """
    lines = _requested_lines(items)

    order = lock_dispatch_order(order_id)

    if order.status == DispatchOrder.Status.CANCELLED:
        raise SupplierReturnError("Cannot return goods from a cancelled order")

    by_id = {str(it.id): it for it in order.items.select_related("product", "batch")}
    already = returned_quantities(order)

    requested = []
    for line in lines:
        item = by_id.get(str(line.get("item_id")))
        if item is None:
            raise SupplierReturnError(f"Item {line.get('item_id')} does not belong to order {order.order_number}")
        qty = to_positive_qty(line.get("quantity"))
        live = int(item.quantity) - already.get(item.id, 0)
        if qty > live:
            raise SupplierReturnError(
                f"Cannot return {qty} of {item.product_code}: only {live} left on the order"
            )
        already[item.id] = already.get(item.id, 0) + qty
        requested.append((item, qty))

    stock_applied = order.status == DispatchOrder.Status.CONFIRMED

    ret = SupplierReturn.objects.create(
        supplier=order.supplier,
        dispatch_order=order,
        return_type=SupplierReturn.ReturnType.ORDER,
        stock_applied=stock_applied,
        reason=reason or "",
        created_by=user,
    )

    total = ZERO
    for item, qty in requested:
        if not stock_applied:
            SupplierReturnItem.objects.create(
                supplier_return=ret,
                order_item=item,
                quantity=qty,
                unit_cost=item.cost_price,
                line_value=_money(Decimal(str(item.cost_price)) * qty),
            )
            continue

        if item.batch_id is None or item.product_id is None:
            raise SupplierReturnError(f"Line {item.line_number} has no stock to return")

        result = consume_from_batch(
            product=item.product,
            batch_id=item.batch_id,
            quantity=qty,
            user=user,
            reference=StockMovement.Reference.SUPPLIER_RETURN,
            reference_id=ret.pk,
            notes=f"Return {ret.return_number} (order {order.order_number})",
        )
        taken = result.quantity_taken
        if taken <= 0:
            logger.warning(
                "Order return line skipped: batch exhausted",
                extra={"order_id": str(order.pk), "item_id": str(item.pk), "requested": qty},
            )
            continue

        removal = remove_items(product=item.product, quantity=taken, supplier=order.supplier)
        deduct_variant_cells(product=item.product, cells=removal.cells)

        line_value = _money(Decimal(str(item.cost_price)) * taken)
        total += line_value
        SupplierReturnItem.objects.create(
            supplier_return=ret,
            order_item=item,
            product=item.product,
            quantity=taken,
            unit_cost=item.cost_price,
            line_value=line_value,
            batch_deductions=[
                {
                    "batch_id": str(item.batch_id),
                    "quantity": taken,
                    "cost_price": str(result.cost_price),
                    "landed_price": str(result.landed_price),
                }
            ],
        )

    if not ret.items.exists():
        raise SupplierReturnError("Nothing could be returned: the order's batches are exhausted")

    if not stock_applied:
        total = _money(sum((it.line_value for it in ret.items.all()), ZERO))

    ret.total_value = _money(total)
    ret.save(update_fields=["total_value"])

    if stock_applied and ret.total_value > ZERO:
        record_return(
            supplier=order.supplier,
            amount=ret.total_value,
            return_id=ret.pk,
            order_number=order.order_number,
            user=user,
        )

    logger.info(
        "Order return recorded",
        extra={
            "return_id": str(ret.pk),
            "order_id": str(order.pk),
            "stock_applied": stock_applied,
            "total_value": str(ret.total_value),
        },
    )
    return ret


@transaction.atomic
def create_product_return(*, supplier_id, items, reason: str = "", user=None) -> SupplierReturn:
    """
    items: [{"product_id": <Product id>, "quantity": n}, ...]
    """
    lines = _requested_lines(items)

    try:
        supplier = lock_supplier(supplier_id)
    except Supplier.DoesNotExist as exc:
        raise SupplierReturnError("Supplier not found") from exc

    ret = SupplierReturn.objects.create(
        supplier=supplier,
        return_type=SupplierReturn.ReturnType.PRODUCT,
        reason=reason or "",
        created_by=user,
    )

    total = ZERO
    for line in lines:
        qty = to_positive_qty(line.get("quantity"))
        try:
            product = Product.objects.get(id=line.get("product_id"))
        except Product.DoesNotExist as exc:
            raise SupplierReturnError(f"Product {line.get('product_id')} not found") from exc

        consumption = consume_fifo(
            product=product,
            quantity=qty,
            user=user,
            reference=StockMovement.Reference.SUPPLIER_RETURN,
            reference_id=ret.pk,
            supplier=supplier,
            notes=f"Return {ret.return_number}",
        )
        removal = remove_items(product=product, quantity=qty, supplier=supplier)
        deduct_variant_cells(product=product, cells=removal.cells)

        line_value = _money(consumption.total_cost)
        total += line_value
        SupplierReturnItem.objects.create(
            supplier_return=ret,
            product=product,
            quantity=qty,
            unit_cost=_money(consumption.average_cost_per_unit),
            line_value=line_value,
            batch_deductions=[
                {
                    "batch_id": str(a.batch_id),
                    "quantity": a.quantity_taken,
                    "cost_price": str(a.cost_price),
                    "landed_price": str(a.landed_price),
                }
                for a in consumption.cost_details
            ],
        )

    ret.total_value = _money(total)
    ret.save(update_fields=["total_value"])

    if ret.total_value > ZERO:
        record_return(supplier=supplier, amount=ret.total_value, return_id=ret.pk, user=user)

    logger.info(
        "Product return recorded",
        extra={"return_id": str(ret.pk), "supplier_id": str(supplier.pk), "total_value": str(ret.total_value)},
    )
    return ret

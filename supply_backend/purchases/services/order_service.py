# purchases/services/order_service.py

"""
DISPATCH ORDER INTAKE

create_dispatch_order(): header + lines in one transaction (status PENDING).
cancel_dispatch_order(): PENDING -> CANCELLED. Confirmed orders are never
cancelled; goods go back through supplier returns instead.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from packets.services import packet_items
from purchases.models import DispatchOrder, DispatchOrderItem
from purchases.services.exceptions import PurchasesServiceError
from purchases.services.locking import lock_dispatch_order
from suppliers.models import LogisticsCompany, Supplier

logger = logging.getLogger("purchases")

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@transaction.atomic
def create_dispatch_order(
    *,
    supplier_id,
    items,
    logistics_company_id=None,
    order_number: str = "",
    dispatch_date=None,
    exchange_rate=Decimal("1"),
    percentage=Decimal("0"),
    total_discount=Decimal("0"),
    total_boxes: int = 0,
    notes: str = "",
    user=None,
) -> DispatchOrder:
    """
    items: [{"product_name", "product_code", "cost_price", "quantity",
             "category"?, "season"?, "packets"?}, ...]
    """
    if not items:
        raise PurchasesServiceError("Dispatch order needs at least one item")

    try:
        supplier = Supplier.objects.get(id=supplier_id, is_active=True)
    except Supplier.DoesNotExist as exc:
        raise PurchasesServiceError("Supplier not found") from exc

    company = None
    if logistics_company_id:
        try:
            company = LogisticsCompany.objects.get(id=logistics_company_id, is_active=True)
        except LogisticsCompany.DoesNotExist as exc:
            raise PurchasesServiceError("Logistics company not found") from exc

    if Decimal(str(exchange_rate)) <= 0:
        raise PurchasesServiceError("exchange_rate must be > 0")

    header = {
        "supplier": supplier,
        "logistics_company": company,
        "order_number": (order_number or "").strip(),
        "exchange_rate": Decimal(str(exchange_rate)),
        "percentage": Decimal(str(percentage or 0)),
        "total_discount": _money(total_discount),
        "total_boxes": int(total_boxes or 0),
        "notes": notes or "",
        "created_by": user,
    }
    if dispatch_date is not None:
        header["dispatch_date"] = dispatch_date

    order = DispatchOrder.objects.create(**header)

    for idx, line in enumerate(items, start=1):
        quantity = int(line.get("quantity") or 0)
        packets = list(line.get("packets") or [])
        if packet_items(packets) > quantity:
            raise PurchasesServiceError(
                f"Line {idx}: packets cover more items than the ordered quantity {quantity}"
            )
        item = DispatchOrderItem(
            order=order,
            line_number=idx,
            product_name=(line.get("product_name") or line.get("product_code") or "").strip(),
            product_code=(line.get("product_code") or "").strip(),
            category=(line.get("category") or "").strip(),
            season=(line.get("season") or "").strip(),
            cost_price=_money(line.get("cost_price")),
            quantity=quantity,
            packets=packets,
        )
        item.full_clean(exclude=["order"])
        item.save()

    logger.info(
        "Dispatch order created",
        extra={"order_id": str(order.pk), "order_number": order.order_number, "lines": len(items)},
    )
    return order


@transaction.atomic
def cancel_dispatch_order(*, order_id, user=None) -> DispatchOrder:
    order = lock_dispatch_order(order_id)

    if order.status != DispatchOrder.Status.PENDING:
        raise PurchasesServiceError(f"Only pending orders can be cancelled (status={order.status})")

    order.status = DispatchOrder.Status.CANCELLED
    order.save(update_fields=["status"])

    logger.info("Dispatch order cancelled", extra={"order_id": str(order.pk)})
    return order

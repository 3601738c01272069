# purchases/services/confirmation_service.py

"""
======================================================
PATH: purchases/services/confirmation_service.py
======================================================
DISPATCH ORDER CONFIRMATION SERVICE

Confirm a DispatchOrder atomically (all-or-nothing):

1) Lock supplier then order (see locking.py), validate status + pricing inputs
2) Per line (savepoint each, failures collected):
   - landed price = cost_price / exchange_rate × (1 + percentage / 100)
   - resolve / create product, update its cost basis
   - new PurchaseBatch for the confirmed quantity (ordered − pre-confirmation returns)
   - merge packet compositions into variant cells
   - register packet stock (identical compositions grouped, remainder loose)
3) Any line failure -> DispatchOrderConfirmationError with every failure,
   the whole confirmation rolls back
4) Ledger: purchase debit (live value), cash / bank payment credits,
   supplier credit application, logistics box charge
5) Mark order CONFIRMED with confirmed_at
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from accounting.models import LedgerEntry
from accounting.services.posting import (
    record_advance_credit,
    record_logistics_charge,
    record_payment,
    record_purchase,
)
from packets.services import PacketStockError, packet_items, register_item_packets
from products.services.catalog import resolve_or_create_product, update_cost_price
from products.services.exceptions import InventoryServiceError
from products.services.stock_intake import add_batch
from products.services.variants import merge_incoming_variants
from purchases.models import DispatchOrder
from purchases.selectors import calculate_current_order_value, returned_quantities
from purchases.services.exceptions import DispatchOrderConfirmationError
from purchases.services.locking import lock_dispatch_order
from purchases.services.payment_service import apply_credit_to_order

logger = logging.getLogger("purchases")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def landed_price(cost_price, *, exchange_rate, percentage) -> Decimal:
    rate = Decimal(str(exchange_rate))
    if rate <= 0:
        raise DispatchOrderConfirmationError("exchange_rate must be > 0")
    pct = Decimal(str(percentage or 0))
    converted = Decimal(str(cost_price)) / rate
    return _money(converted * (Decimal("1") + pct / Decimal("100")))


def _packet_composition(packets) -> list[dict]:
    rows = []
    for packet in packets or []:
        count = int(packet.get("count") or 1)
        for r in packet.get("composition") or []:
            rows.append(
                {
                    "size": r.get("size"),
                    "color": r.get("color"),
                    "quantity": int(r.get("quantity") or 0) * count,
                }
            )
    return rows


def _confirm_line(*, order, item, confirmed_qty: int, exchange_rate, percentage, user):
    landed = landed_price(item.cost_price, exchange_rate=exchange_rate, percentage=percentage)

    product = resolve_or_create_product(
        code=item.product_code,
        supplier=order.supplier,
        name=item.product_name,
        cost_price=landed,
        category=item.category,
        season=item.season,
    )
    update_cost_price(product, landed)

    if packet_items(item.packets) > confirmed_qty:
        raise PacketStockError(
            f"Packets cover {packet_items(item.packets)} items but only {confirmed_qty} confirmed"
        )

    batch = add_batch(
        product=product,
        quantity=confirmed_qty,
        cost_price=item.cost_price,
        landed_price=landed,
        supplier=order.supplier,
        purchase_date=timezone.now(),
        exchange_rate=exchange_rate,
        dispatch_order_id=order.pk,
        batch_number=f"{order.order_number}-{item.line_number}",
        user=user,
        notes=f"Dispatch order {order.order_number}",
    )

    composition = _packet_composition(item.packets)
    if composition:
        merge_incoming_variants(product=product, composition=composition)

    register_item_packets(
        product=product,
        supplier=order.supplier,
        dispatch_order_id=order.pk,
        packets=item.packets,
        quantity=confirmed_qty,
    )

    item.product = product
    item.batch = batch
    item.landed_price = landed
    item.confirmed_quantity = confirmed_qty
    item.save(update_fields=["product", "batch", "landed_price", "confirmed_quantity"])

    return {
        "line_number": item.line_number,
        "product_id": str(product.pk),
        "batch_id": str(batch.pk),
        "confirmed_quantity": confirmed_qty,
        "landed_price": landed,
    }


@transaction.atomic
def confirm_dispatch_order(
    *,
    order_id,
    user=None,
    exchange_rate=None,
    percentage=None,
    total_discount=None,
    total_boxes=None,
    cash_payment=None,
    bank_payment=None,
) -> dict:
    """
    CONFIRM DISPATCH ORDER (atomic)

    Optional arguments override what is stored on the order header.
    """
    order = lock_dispatch_order(order_id)

    if order.status == DispatchOrder.Status.CONFIRMED:
        raise DispatchOrderConfirmationError("Dispatch order is already confirmed")
    if order.status != DispatchOrder.Status.PENDING:
        raise DispatchOrderConfirmationError(f"Only pending orders can be confirmed (status={order.status})")

    if exchange_rate is not None:
        order.exchange_rate = Decimal(str(exchange_rate))
    if percentage is not None:
        order.percentage = Decimal(str(percentage))
    if total_discount is not None:
        order.total_discount = _money(total_discount)
    if total_boxes is not None:
        order.total_boxes = int(total_boxes)

    if Decimal(str(order.exchange_rate)) <= 0:
        raise DispatchOrderConfirmationError("exchange_rate must be > 0")
    if Decimal(str(order.percentage)) < 0:
        raise DispatchOrderConfirmationError("percentage cannot be negative")
    if _money(order.total_discount) < ZERO:
        raise DispatchOrderConfirmationError("total_discount cannot be negative")

    cash = _money(cash_payment)
    bank = _money(bank_payment)
    if cash < ZERO or bank < ZERO:
        raise DispatchOrderConfirmationError("Payments cannot be negative")

    items = list(order.items.order_by("line_number"))
    if not items:
        raise DispatchOrderConfirmationError("Dispatch order has no items")

    logger.info(
        "Confirming dispatch order",
        extra={"order_id": str(order.pk), "order_number": order.order_number, "lines": len(items)},
    )

    returned = returned_quantities(order)
    lines = []
    failures = []

    for item in items:
        confirmed_qty = max(0, int(item.quantity) - returned.get(item.id, 0))
        if confirmed_qty == 0:
            item.confirmed_quantity = 0
            item.save(update_fields=["confirmed_quantity"])
            continue

        try:
            with transaction.atomic():
                lines.append(
                    _confirm_line(
                        order=order,
                        item=item,
                        confirmed_qty=confirmed_qty,
                        exchange_rate=order.exchange_rate,
                        percentage=order.percentage,
                        user=user,
                    )
                )
        except (InventoryServiceError, PacketStockError, ValidationError) as exc:
            failures.append(
                {
                    "line_number": item.line_number,
                    "product_code": item.product_code,
                    "error": str(exc),
                }
            )

    if failures:
        logger.error(
            "Dispatch order confirmation failed",
            extra={"order_id": str(order.pk), "failures": failures},
        )
        raise DispatchOrderConfirmationError(
            f"{len(failures)} line(s) could not be confirmed",
            failures=failures,
        )

    # ------------------------------
    # Ledger
    # ------------------------------
    supplier = order.supplier
    value = calculate_current_order_value(order)

    if value > ZERO:
        record_purchase(
            supplier=supplier,
            order_id=order.pk,
            order_number=order.order_number,
            amount=value,
            user=user,
        )

    # Payments beyond the order value stay with the supplier as advance credit.
    due = value
    paid_on_order = ZERO
    for method, amount in ((LedgerEntry.PaymentMethod.CASH, cash), (LedgerEntry.PaymentMethod.BANK, bank)):
        if amount <= ZERO:
            continue
        on_order = min(amount, due)
        if on_order > ZERO:
            record_payment(
                entity_type=LedgerEntry.EntityType.SUPPLIER,
                entity_id=supplier.pk,
                amount=on_order,
                payment_method=method,
                order_id=order.pk,
                order_number=order.order_number,
                user=user,
            )
            due = _money(due - on_order)
            paid_on_order += on_order
        excess = _money(amount - on_order)
        if excess > ZERO:
            record_advance_credit(
                entity_type=LedgerEntry.EntityType.SUPPLIER,
                entity_id=supplier.pk,
                amount=excess,
                payment_method=method,
                user=user,
            )

    credit_applied = ZERO
    if due > ZERO:
        credit_applied = apply_credit_to_order(
            supplier_id=supplier.pk,
            order_id=order.pk,
            amount_due=due,
            order_number=order.order_number,
            user=user,
        )

    logistics_charge = ZERO
    if order.logistics_company_id and int(order.total_boxes or 0) > 0:
        entry = record_logistics_charge(
            company=order.logistics_company,
            order_id=order.pk,
            order_number=order.order_number,
            total_boxes=order.total_boxes,
            box_rate=order.logistics_company.box_rate,
            user=user,
        )
        if entry is not None:
            logistics_charge = entry.debit

    # ------------------------------
    # Mark order confirmed
    # ------------------------------
    order.status = DispatchOrder.Status.CONFIRMED
    order.confirmed_at = timezone.now()
    order.confirmed_by = user
    order.save(
        update_fields=[
            "status",
            "confirmed_at",
            "confirmed_by",
            "exchange_rate",
            "percentage",
            "total_discount",
            "total_boxes",
        ]
    )

    remaining = _money(value - paid_on_order - credit_applied)

    logger.info(
        "Dispatch order confirmed",
        extra={
            "order_id": str(order.pk),
            "order_value": str(value),
            "paid": str(paid_on_order),
            "credit_applied": str(credit_applied),
            "logistics_charge": str(logistics_charge),
        },
    )

    return {
        "order_id": str(order.pk),
        "order_number": order.order_number,
        "status": order.status,
        "confirmed_at": order.confirmed_at,
        "order_value": value,
        "paid": paid_on_order,
        "credit_applied": credit_applied,
        "remaining": remaining,
        "logistics_charge": logistics_charge,
        "lines": lines,
    }

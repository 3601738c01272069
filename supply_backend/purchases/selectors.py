# purchases/selectors.py

"""
======================================================
PATH: purchases/selectors.py
======================================================
ORDER READ MODELS

Nothing here trusts a stored order total:
- live value   = Σ cost_price × (ordered − returned) − total_discount, floored at 0
- remaining    = live value − payments (incl. applied credit) − direct return credits
- pending list = confirmed orders with remaining > 0, oldest confirmation first
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum
from django.db.models.functions import Coalesce

from accounting.models import LedgerEntry
from accounting.services.balance_service import (
    get_balance_summary,
    get_order_charge_total,
    get_order_payments,
    get_order_remaining_balance,
    get_order_return_total,
)
from purchases.models import DispatchOrder, SupplierReturnItem

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def returned_quantities(order) -> dict:
    """{order_item_id: units returned}, pre- and post-confirmation returns alike."""
    rows = (
        SupplierReturnItem.objects.filter(order_item__order_id=getattr(order, "pk", order))
        .values("order_item_id")
        .annotate(total=Coalesce(Sum("quantity"), 0))
    )
    return {r["order_item_id"]: int(r["total"] or 0) for r in rows}


def calculate_current_order_value(order) -> Decimal:
    returned = returned_quantities(order)
    gross = ZERO
    for item in order.items.all():
        live_qty = max(0, int(item.quantity) - returned.get(item.id, 0))
        gross += Decimal(str(item.cost_price)) * live_qty

    value = _money(gross) - _money(order.total_discount)
    return max(ZERO, _money(value))


def _order_sort_key(order):
    # confirmed_at is canonical; created_at breaks ties and covers legacy rows
    return (order.confirmed_at or order.created_at, order.created_at)


def get_order_balance_summary(order) -> dict:
    value = calculate_current_order_value(order)
    payments = get_order_payments(order.pk)
    direct_returns = get_order_return_total(order.pk)
    remaining = get_order_remaining_balance(order.pk, value)

    if remaining <= ZERO:
        status = "paid"
    elif payments["total"] > ZERO or direct_returns > ZERO:
        status = "partial"
    else:
        status = "pending"

    return {
        "order_id": str(order.pk),
        "order_number": order.order_number,
        "confirmed_at": order.confirmed_at,
        "order_value": value,
        "payments": payments,
        "returns": direct_returns,
        "remaining": remaining,
        "payment_status": status,
    }


def get_pending_orders_for_supplier(supplier) -> list[dict]:
    """Confirmed orders of the supplier that still carry a positive remaining balance."""
    orders = (
        DispatchOrder.objects.filter(
            supplier_id=getattr(supplier, "pk", supplier),
            status=DispatchOrder.Status.CONFIRMED,
        )
        .prefetch_related("items")
    )

    pending = []
    for order in sorted(orders, key=_order_sort_key):
        row = get_order_balance_summary(order)
        if row["remaining"] > ZERO:
            row["order"] = order
            pending.append(row)
    return pending


def get_pending_logistics_charges(company) -> list[dict]:
    """
    Confirmed orders carried by the company with unpaid charge,
    oldest confirmation first.
    """
    orders = DispatchOrder.objects.filter(
        logistics_company_id=getattr(company, "pk", company),
        status=DispatchOrder.Status.CONFIRMED,
    )

    pending = []
    for order in sorted(orders, key=_order_sort_key):
        charge = get_order_charge_total(order.pk)
        if charge <= ZERO:
            continue
        paid = get_order_payments(order.pk, entity_type=LedgerEntry.EntityType.LOGISTICS)["total"]
        remaining = _money(charge - paid)
        if remaining > ZERO:
            pending.append(
                {
                    "order": order,
                    "order_id": str(order.pk),
                    "order_number": order.order_number,
                    "confirmed_at": order.confirmed_at,
                    "charge": charge,
                    "paid": paid,
                    "remaining": remaining,
                }
            )
    return pending


def get_supplier_dashboard(supplier) -> dict:
    supplier_id = getattr(supplier, "pk", supplier)
    summary = get_balance_summary(LedgerEntry.EntityType.SUPPLIER, supplier_id)
    pending = get_pending_orders_for_supplier(supplier_id)

    counts = {
        status: DispatchOrder.objects.filter(supplier_id=supplier_id, status=status).count()
        for status in DispatchOrder.Status.values
    }

    return {
        "supplier_id": str(supplier_id),
        "balance": summary,
        "orders": counts,
        "pending_orders": [
            {k: v for k, v in row.items() if k != "order"} for row in pending
        ],
        "pending_total": _money(sum((row["remaining"] for row in pending), ZERO)),
    }

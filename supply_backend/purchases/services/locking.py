# purchases/services/locking.py

"""
ROW LOCK ORDER

Every purchases write path takes row locks in the same order:

    Supplier -> DispatchOrder -> Inventory (per product, lock_inventory)

Confirmation, order returns, product returns, credit application and
payment distribution all start at the supplier row, so two of them for the
same supplier queue there instead of meeting on Inventory in opposite order.
"""

from __future__ import annotations

from purchases.models import DispatchOrder
from purchases.services.exceptions import DispatchOrderNotFoundError
from suppliers.models import Supplier


def lock_supplier(supplier_id, **filters) -> Supplier:
    """Raises Supplier.DoesNotExist; callers map it to their own error."""
    return Supplier.objects.select_for_update().get(id=supplier_id, **filters)


def lock_dispatch_order(order_id) -> DispatchOrder:
    """
    Lock the order's supplier, then the order itself.

    supplier_id never changes after creation, so reading it unlocked first
    is safe.
    """
    supplier_id = (
        DispatchOrder.objects.filter(id=order_id)
        .values_list("supplier_id", flat=True)
        .first()
    )
    if supplier_id is None:
        raise DispatchOrderNotFoundError("Dispatch order not found")

    lock_supplier(supplier_id)

    return (
        DispatchOrder.objects.select_for_update(of=("self",))
        .select_related("supplier", "logistics_company")
        .get(id=order_id)
    )

# purchases/tests/_factories.py

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from purchases.models import DispatchOrder
from purchases.services.confirmation_service import confirm_dispatch_order
from purchases.services.order_service import create_dispatch_order
from suppliers.models import LogisticsCompany


def make_logistics(code="FAST", box_rate="12.50"):
    return LogisticsCompany.objects.create(name=f"{code} Cargo", code=code, box_rate=Decimal(box_rate))


def line(code, cost, quantity, *, packets=None, name=""):
    return {
        "product_code": code,
        "product_name": name or code,
        "cost_price": Decimal(cost),
        "quantity": quantity,
        "packets": packets or [],
    }


def pending_order(supplier, items, **header):
    return create_dispatch_order(supplier_id=supplier.pk, items=items, **header)


def confirmed_order(supplier, code, cost, quantity, *, days_ago=0, user=None, **confirm):
    """One-line order, confirmed, with confirmed_at pinned `days_ago` back."""
    order = pending_order(supplier, [line(code, cost, quantity)])
    confirm_dispatch_order(order_id=order.pk, user=user, **confirm)

    stamp = timezone.now() - timedelta(days=days_ago)
    DispatchOrder.objects.filter(pk=order.pk).update(confirmed_at=stamp)
    order.refresh_from_db()
    return order

# products/services/inventory.py

"""
INVENTORY RECORD HELPERS

- get_or_create_inventory(): first stock-in creates the record with default levels
- lock_inventory(): the per-product pessimistic lock (select_for_update)
- read helpers for available batches and batch totals

Every mutating service in this package must call lock_inventory() inside
transaction.atomic before touching batches or variants.

Lock order across apps: Supplier -> DispatchOrder -> Inventory. Callers that
hold a supplier or order lock take it before reaching lock_inventory();
nothing that holds an Inventory lock may then lock a supplier or order.
"""

from __future__ import annotations

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from products.models import Inventory, Product, PurchaseBatch
from products.services.exceptions import InventoryNotFoundError


def _product_id(product) -> object:
    return getattr(product, "pk", product)


@transaction.atomic
def get_or_create_inventory(product: Product) -> Inventory:
    inventory, created = Inventory.objects.get_or_create(
        product_id=_product_id(product),
        defaults={
            "reorder_level": getattr(settings, "DEFAULT_REORDER_LEVEL", 10),
            "max_stock_level": getattr(settings, "DEFAULT_MAX_STOCK_LEVEL", 1000),
        },
    )
    return inventory


def lock_inventory(product, *, create: bool = False) -> Inventory:
    """
    Lock the product's inventory row for the rest of the current transaction.
    """
    if create:
        get_or_create_inventory(product)

    try:
        return (
            Inventory.objects.select_for_update()
            .select_related("product")
            .get(product_id=_product_id(product))
        )
    except Inventory.DoesNotExist as exc:
        raise InventoryNotFoundError(
            f"No inventory record for product {_product_id(product)}"
        ) from exc


def get_available_batches(product, *, supplier=None):
    """
    Unexhausted batches in FIFO order (oldest purchase_date first).
    """
    qs = PurchaseBatch.objects.filter(
        product_id=_product_id(product),
        remaining_quantity__gt=0,
    )
    if supplier is not None:
        qs = qs.filter(supplier_id=getattr(supplier, "pk", supplier))
    return qs.order_by("purchase_date", "created_at")


def batch_total(product) -> int:
    total = PurchaseBatch.objects.filter(product_id=_product_id(product)).aggregate(
        total=Coalesce(Sum("remaining_quantity"), 0)
    )["total"]
    return int(total or 0)


def touch(inventory: Inventory, *fields: str) -> None:
    inventory.last_stock_update = timezone.now()
    inventory.save(update_fields=[*fields, "last_stock_update", "updated_at"])

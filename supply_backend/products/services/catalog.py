# products/services/catalog.py

"""
PRODUCT CATALOG HOOKS

Used by order confirmation:
- resolve_or_create_product(): find a supplier article by code, create it if new,
  reactivate it if it was archived
- update_cost_price(): overwrite the single current cost basis
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from products.models import Product

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@transaction.atomic
def resolve_or_create_product(
    *,
    code: str,
    supplier,
    name: str = "",
    cost_price=None,
    category: str = "",
    season: str = "",
) -> Product:
    code = (code or "").strip()
    if not code:
        raise ValidationError("product code is required")

    supplier_id = getattr(supplier, "pk", supplier)

    product = (
        Product.objects.select_for_update()
        .filter(supplier_id=supplier_id, code=code)
        .first()
    )

    if product is None:
        return Product.objects.create(
            supplier_id=supplier_id,
            code=code,
            name=(name or code).strip(),
            category=(category or "").strip(),
            season=(season or "").strip(),
            cost_price=_money(cost_price),
        )

    if not product.is_active:
        product.is_active = True
        product.save(update_fields=["is_active", "updated_at"])

    return product


def update_cost_price(product: Product, cost_price) -> Product:
    price = _money(cost_price)
    if price < Decimal("0.00"):
        raise ValidationError("cost_price cannot be negative")

    if product.cost_price != price:
        product.cost_price = price
        product.save(update_fields=["cost_price", "updated_at"])
    return product

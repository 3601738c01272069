# products/tests/_factories.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from products.models import Product
from products.services.stock_intake import add_batch
from suppliers.models import Supplier

User = get_user_model()


def make_user(username="stock_admin"):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="password123",
    )


def make_supplier(name="Lahore Textiles"):
    return Supplier.objects.create(name=name)


def make_product(supplier, code="TS-100", name="Crew neck tee"):
    return Product.objects.create(supplier=supplier, code=code, name=name)


def stock_in(product, quantity, cost, *, days_ago=0, supplier=None):
    return add_batch(
        product=product,
        quantity=quantity,
        cost_price=Decimal(cost),
        supplier=supplier if supplier is not None else product.supplier,
        purchase_date=timezone.now() - timedelta(days=days_ago),
    )

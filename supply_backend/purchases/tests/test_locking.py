# purchases/tests/test_locking.py

from unittest import mock

from django.test import TestCase

from products.models import Product
from products.services.inventory import lock_inventory
from products.tests._factories import make_supplier
from purchases.services.confirmation_service import confirm_dispatch_order
from purchases.services.locking import lock_supplier
from purchases.services.return_service import create_product_return
from purchases.tests._factories import confirmed_order, line, pending_order

INVENTORY_LOCKS = (
    "products.services.stock_intake.lock_inventory",
    "products.services.stock_fifo.lock_inventory",
    "products.services.variants.lock_inventory",
)
SUPPLIER_LOCKS = (
    "purchases.services.locking.lock_supplier",
    "purchases.services.return_service.lock_supplier",
)


class LockOrderTests(TestCase):
    """Supplier row is locked before any Inventory row."""

    def setUp(self):
        self.supplier = make_supplier()
        self.calls = []

    def _recorder(self, name, target):
        def record(*args, **kwargs):
            self.calls.append(name)
            return target(*args, **kwargs)

        return record

    def _watch_locks(self):
        patchers = [
            mock.patch(path, side_effect=self._recorder("supplier", lock_supplier))
            for path in SUPPLIER_LOCKS
        ] + [
            mock.patch(path, side_effect=self._recorder("inventory", lock_inventory))
            for path in INVENTORY_LOCKS
        ]
        for patcher in patchers:
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_confirmation_locks_supplier_first(self):
        packets = [{"composition": [{"size": "M", "color": "Red", "quantity": 2}], "count": 2}]
        order = pending_order(self.supplier, [line("LK-1", "5.00", 4, packets=packets)])
        self._watch_locks()

        confirm_dispatch_order(order_id=order.pk)

        self.assertIn("inventory", self.calls)
        self.assertEqual(self.calls[0], "supplier")
        self.assertLess(self.calls.index("supplier"), self.calls.index("inventory"))

    def test_product_return_locks_supplier_first(self):
        confirmed_order(self.supplier, "LK-2", "5.00", 4)
        product = Product.objects.get(code="LK-2")
        self._watch_locks()

        create_product_return(
            supplier_id=self.supplier.pk,
            items=[{"product_id": product.pk, "quantity": 1}],
        )

        self.assertIn("inventory", self.calls)
        self.assertEqual(self.calls[0], "supplier")

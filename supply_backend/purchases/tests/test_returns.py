# purchases/tests/test_returns.py

from decimal import Decimal

from django.test import TestCase

from accounting.models import LedgerEntry
from accounting.services.balance_service import get_order_return_total, get_supplier_balance
from packets.models import PacketStock
from packets.selectors import packet_item_total
from products.models import Inventory, Product, PurchaseBatch, VariantStock
from products.services.exceptions import InsufficientStockError
from products.services.stock_sync import check_batch_consistency, validate_stock_sync
from products.tests._factories import make_supplier, make_user
from purchases.models import SupplierReturn
from purchases.selectors import get_order_balance_summary
from purchases.services.confirmation_service import confirm_dispatch_order
from purchases.services.exceptions import SupplierReturnError
from purchases.services.order_service import cancel_dispatch_order
from purchases.services.return_service import create_order_return, create_product_return
from purchases.tests._factories import confirmed_order, line, pending_order


class OrderReturnTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.supplier = make_supplier()
        self.order = pending_order(self.supplier, [line("JN-200", "25.00", 4)])
        confirm_dispatch_order(order_id=self.order.pk)
        self.item = self.order.items.get()
        self.product = Product.objects.get(code="JN-200")

    def _return(self, qty):
        return create_order_return(
            order_id=self.order.pk,
            items=[{"item_id": str(self.item.id), "quantity": qty}],
            reason="Stitching defect",
            user=self.user,
        )

    def test_confirmed_return_deducts_line_batch(self):
        ret = self._return(2)

        self.assertTrue(ret.stock_applied)
        self.assertTrue(ret.return_number.startswith("RET-"))
        self.assertEqual(ret.total_value, Decimal("50.00"))

        row = ret.items.get()
        self.assertEqual(row.batch_deductions[0]["batch_id"], str(self.item.batch_id))

        batch = PurchaseBatch.objects.get(product=self.product)
        self.assertEqual(batch.remaining_quantity, 2)
        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 2)
        self.assertEqual(packet_item_total(self.product), 2)

    def test_confirmed_return_credits_supplier_once(self):
        self._return(2)

        credit = LedgerEntry.objects.get(transaction_type=LedgerEntry.TransactionType.RETURN)
        self.assertEqual(credit.credit, Decimal("50.00"))
        self.assertEqual(credit.reference_model, LedgerEntry.ReferenceModel.SUPPLIER_RETURN)
        self.assertEqual(get_supplier_balance(self.supplier.pk), Decimal("50.00"))

        summary = get_order_balance_summary(self.order)
        self.assertEqual(summary["order_value"], Decimal("50.00"))
        self.assertEqual(summary["remaining"], Decimal("50.00"))
        self.assertEqual(get_order_return_total(self.order.pk), Decimal("0.00"))

    def test_cannot_return_more_than_left_on_order(self):
        with self.assertRaises(SupplierReturnError):
            self._return(5)

        self._return(4)
        with self.assertRaises(SupplierReturnError):
            self._return(1)

    def test_exhausted_batch_is_clamped(self):
        # FIFO product return drains the same batch first
        create_product_return(
            supplier_id=self.supplier.pk,
            items=[{"product_id": self.product.pk, "quantity": 3}],
        )

        with self.assertLogs("inventory", level="WARNING"):
            ret = self._return(2)

        self.assertEqual(ret.items.get().quantity, 1)
        self.assertEqual(ret.total_value, Decimal("25.00"))
        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 0)

    def test_item_from_another_order(self):
        other = pending_order(self.supplier, [line("X-1", "1.00", 1)])
        with self.assertRaises(SupplierReturnError):
            create_order_return(
                order_id=self.order.pk,
                items=[{"item_id": other.items.get().id, "quantity": 1}],
            )

    def test_cancelled_order(self):
        order = pending_order(self.supplier, [line("X-1", "1.00", 2)])
        cancel_dispatch_order(order_id=order.pk)

        with self.assertRaises(SupplierReturnError):
            create_order_return(order_id=order.pk, items=[{"item_id": order.items.get().id, "quantity": 1}])


class PendingOrderReturnTests(TestCase):
    def test_quantity_only_record(self):
        supplier = make_supplier()
        order = pending_order(supplier, [line("JN-200", "25.00", 4)])

        ret = create_order_return(order_id=order.pk, items=[{"item_id": order.items.get().id, "quantity": 1}])

        self.assertFalse(ret.stock_applied)
        self.assertEqual(ret.total_value, Decimal("25.00"))
        self.assertFalse(Product.objects.exists())
        self.assertFalse(LedgerEntry.objects.exists())


class ProductReturnTests(TestCase):
    def setUp(self):
        self.supplier = make_supplier()
        confirmed_order(self.supplier, "A-1", "10.00", 5, days_ago=3)
        confirmed_order(self.supplier, "A-1", "20.00", 5, days_ago=1)
        self.product = Product.objects.get(code="A-1")

    def test_fifo_across_batches(self):
        ret = create_product_return(
            supplier_id=self.supplier.pk,
            items=[{"product_id": self.product.pk, "quantity": 7}],
            reason="Season end",
        )

        self.assertEqual(ret.return_type, SupplierReturn.ReturnType.PRODUCT)
        self.assertEqual(ret.total_value, Decimal("90.00"))

        row = ret.items.get()
        self.assertEqual(row.unit_cost, Decimal("12.86"))
        self.assertEqual([d["quantity"] for d in row.batch_deductions], [5, 2])

        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 3)
        self.assertEqual(packet_item_total(self.product), 3)
        self.assertEqual(get_supplier_balance(self.supplier.pk), Decimal("60.00"))

    def test_insufficient_stock_rolls_back(self):
        with self.assertRaises(InsufficientStockError):
            create_product_return(
                supplier_id=self.supplier.pk,
                items=[{"product_id": self.product.pk, "quantity": 11}],
            )

        self.assertFalse(SupplierReturn.objects.exists())
        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 10)

    def test_unknown_product(self):
        with self.assertRaises(SupplierReturnError):
            create_product_return(
                supplier_id=self.supplier.pk,
                items=[{"product_id": self.supplier.pk, "quantity": 1}],
            )


class PacketedReturnTests(TestCase):
    def setUp(self):
        self.supplier = make_supplier()

    def _confirm(self, code, packets, quantity):
        order = pending_order(self.supplier, [line(code, "8.00", quantity, packets=packets)])
        confirm_dispatch_order(order_id=order.pk)
        return order, order.items.get(), Product.objects.get(code=code)

    def _cells(self, product):
        return {
            (v.size, v.color): v.quantity
            for v in VariantStock.objects.filter(inventory__product=product)
        }

    def test_partial_packet_return_keeps_packets_in_sync(self):
        packets = [
            {
                "composition": [
                    {"size": "M", "color": "Red", "quantity": 3},
                    {"size": "L", "color": "Red", "quantity": 2},
                ],
                "count": 2,
            }
        ]
        order, item, product = self._confirm("PK-5", packets, 10)

        create_order_return(order_id=order.pk, items=[{"item_id": str(item.id), "quantity": 3}])

        sync = validate_stock_sync(product)
        self.assertTrue(sync["is_valid"])
        self.assertEqual(packet_item_total(product), 7)
        self.assertEqual(PacketStock.objects.get(product=product, is_loose=False).available_packets, 1)
        opened = PacketStock.objects.get(product=product, is_loose=True, available_packets__gt=0)
        self.assertEqual(opened.available_packets, 2)
        self.assertEqual(self._cells(product), {("M", "Red"): 3, ("L", "Red"): 4})

    def test_order_return_reduces_variant_cells(self):
        packets = [{"composition": [{"size": "M", "color": "Red", "quantity": 1}], "count": 10}]
        order, item, product = self._confirm("PK-1", packets, 10)

        create_order_return(order_id=order.pk, items=[{"item_id": str(item.id), "quantity": 3}])

        consistency = check_batch_consistency(product)
        self.assertEqual(consistency["current_stock"], 7)
        self.assertEqual(consistency["variant_total"], 7)
        self.assertTrue(consistency["variants_consistent"])

    def test_product_return_reduces_variant_cells(self):
        packets = [{"composition": [{"size": "S", "color": "Blue", "quantity": 2}], "count": 3}]
        _, _, product = self._confirm("PK-2", packets, 6)

        create_product_return(
            supplier_id=self.supplier.pk,
            items=[{"product_id": product.pk, "quantity": 4}],
        )

        self.assertEqual(self._cells(product), {("S", "Blue"): 2})
        self.assertTrue(check_batch_consistency(product)["variants_consistent"])
        self.assertTrue(validate_stock_sync(product)["is_valid"])

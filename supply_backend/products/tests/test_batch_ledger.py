# products/tests/test_batch_ledger.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from products.models import Inventory, PurchaseBatch, StockMovement
from products.services.exceptions import (
    BatchNotFoundError,
    BatchQuantityExceededError,
    InsufficientStockError,
    InvalidQuantityError,
)
from products.services.inventory import get_available_batches
from products.services.stock_fifo import consume_fifo, consume_from_batch
from products.services.stock_sync import check_batch_consistency
from products.tests._factories import make_product, make_supplier, make_user, stock_in


class BatchIntakeTests(TestCase):
    def setUp(self):
        self.supplier = make_supplier()
        self.product = make_product(self.supplier)

    def test_first_intake_creates_inventory(self):
        stock_in(self.product, 5, "10.00")

        inv = Inventory.objects.get(product=self.product)
        self.assertEqual(inv.current_stock, 5)
        self.assertEqual(inv.average_cost_price, Decimal("10.00"))
        self.assertIsNotNone(inv.last_stock_update)

    def test_average_is_recomputed_over_all_batches(self):
        stock_in(self.product, 5, "10.00", days_ago=3)
        stock_in(self.product, 5, "20.00")

        inv = Inventory.objects.get(product=self.product)
        self.assertEqual(inv.current_stock, 10)
        self.assertEqual(inv.average_cost_price, Decimal("15.00"))

    def test_intake_writes_in_movement(self):
        batch = stock_in(self.product, 4, "7.50")

        movement = StockMovement.objects.get(batch=batch)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.IN)
        self.assertEqual(movement.quantity, 4)
        self.assertEqual(movement.unit_cost_snapshot, Decimal("7.50"))

    def test_rejects_non_positive_quantity(self):
        with self.assertRaises(InvalidQuantityError):
            stock_in(self.product, 0, "1.00")

    def test_batch_cost_is_immutable(self):
        batch = stock_in(self.product, 4, "7.50")
        batch.cost_price = Decimal("9.00")
        with self.assertRaises(ValidationError):
            batch.save()

    def test_batch_cannot_be_deleted(self):
        batch = stock_in(self.product, 4, "7.50")
        with self.assertRaises(ValidationError):
            batch.delete()


class FifoConsumptionTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.supplier = make_supplier()
        self.product = make_product(self.supplier)
        self.old = stock_in(self.product, 5, "10.00", days_ago=5)
        self.new = stock_in(self.product, 5, "20.00", days_ago=1)

    def test_consumes_oldest_first_and_costs_each_batch(self):
        result = consume_fifo(product=self.product, quantity=7, user=self.user)

        self.assertEqual(result.total_cost, Decimal("90.00"))
        self.assertEqual([a.quantity_taken for a in result.cost_details], [5, 2])

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.old.remaining_quantity, 0)
        self.assertEqual(self.new.remaining_quantity, 3)

        inv = Inventory.objects.get(product=self.product)
        self.assertEqual(inv.current_stock, 3)
        self.assertEqual(inv.average_cost_price, Decimal("20.00"))

    def test_one_out_movement_per_batch_touched(self):
        consume_fifo(product=self.product, quantity=7, user=self.user)

        outs = StockMovement.objects.filter(
            product=self.product, movement_type=StockMovement.MovementType.OUT
        )
        self.assertEqual(outs.count(), 2)
        self.assertEqual(
            sorted(outs.values_list("unit_cost_snapshot", flat=True)),
            [Decimal("10.00"), Decimal("20.00")],
        )

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaises(InsufficientStockError):
            consume_fifo(product=self.product, quantity=11)

        inv = Inventory.objects.get(product=self.product)
        self.assertEqual(inv.current_stock, 10)
        self.assertEqual(
            sum(PurchaseBatch.objects.filter(product=self.product).values_list("remaining_quantity", flat=True)),
            10,
        )

    def test_supplier_filter_limits_the_walk(self):
        other = make_supplier("Karachi Knits")
        stock_in(self.product, 3, "5.00", days_ago=10, supplier=other)

        result = consume_fifo(product=self.product, quantity=6, supplier=self.supplier)

        self.assertEqual(result.total_cost, Decimal("70.00"))
        self.assertEqual(
            get_available_batches(self.product, supplier=other).first().remaining_quantity, 3
        )

    def test_supplier_filter_checks_supplier_stock(self):
        other = make_supplier("Karachi Knits")
        stock_in(self.product, 3, "5.00", supplier=other)

        with self.assertRaises(InsufficientStockError):
            consume_fifo(product=self.product, quantity=4, supplier=other)

    def test_ledger_stays_consistent(self):
        consume_fifo(product=self.product, quantity=4)
        consume_fifo(product=self.product, quantity=3)

        report = check_batch_consistency(self.product)
        self.assertTrue(report["is_consistent"])
        self.assertEqual(report["current_stock"], 3)
        self.assertEqual(report["batch_total"], 3)


class TargetedBatchConsumptionTests(TestCase):
    def setUp(self):
        self.supplier = make_supplier()
        self.product = make_product(self.supplier)
        self.batch = stock_in(self.product, 5, "10.00")
        stock_in(self.product, 5, "20.00")

    def test_takes_from_the_named_batch_only(self):
        result = consume_from_batch(product=self.product, batch_id=self.batch.id, quantity=3)

        self.assertEqual(result.quantity_taken, 3)
        self.assertFalse(result.clamped)
        self.assertEqual(result.cost_price, Decimal("10.00"))
        self.batch.refresh_from_db()
        self.assertEqual(self.batch.remaining_quantity, 2)
        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 7)

    def test_over_request_is_clamped_by_default(self):
        with self.assertLogs("inventory", level="WARNING"):
            result = consume_from_batch(product=self.product, batch_id=self.batch.id, quantity=8)

        self.assertTrue(result.clamped)
        self.assertEqual(result.quantity_taken, 5)
        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 5)

    @override_settings(INVENTORY_STRICT_BATCH_CONSUMPTION=True)
    def test_over_request_raises_in_strict_mode(self):
        with self.assertRaises(BatchQuantityExceededError):
            consume_from_batch(product=self.product, batch_id=self.batch.id, quantity=8)

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.remaining_quantity, 5)

    def test_unknown_batch(self):
        other = make_product(self.supplier, code="TS-200")
        foreign = stock_in(other, 1, "1.00")

        with self.assertRaises(BatchNotFoundError):
            consume_from_batch(product=self.product, batch_id=foreign.id, quantity=1)

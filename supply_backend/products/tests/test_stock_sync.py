# products/tests/test_stock_sync.py

from django.test import TestCase, override_settings

from packets.models import PacketStock
from products.models import Inventory, StockMovement
from products.services.exceptions import (
    InventoryNotFoundError,
    UnsupportedReconciliationDirectionError,
)
from products.services.inventory import get_or_create_inventory
from products.services.stock_sync import (
    get_low_stock_alerts,
    reconcile_stock,
    validate_stock_sync,
)
from products.tests._factories import make_product, make_supplier, stock_in


def loose_packets(product, items, barcode):
    return PacketStock.objects.create(
        product=product,
        supplier=product.supplier,
        barcode=barcode,
        items_per_packet=1,
        available_packets=items,
        is_loose=True,
    )


class StockSyncTests(TestCase):
    def setUp(self):
        self.product = make_product(make_supplier())
        stock_in(self.product, 10, "5.00")

    def test_in_sync(self):
        loose_packets(self.product, 10, "PKT-A")

        report = validate_stock_sync(self.product)

        self.assertTrue(report["is_valid"])
        self.assertEqual(report["difference"], 0)
        self.assertEqual(len(report["packet_details"]), 1)

    def test_difference_within_tolerance(self):
        loose_packets(self.product, 9, "PKT-A")

        report = validate_stock_sync(self.product)

        self.assertTrue(report["is_valid"])
        self.assertEqual(report["difference"], 1)

    def test_difference_beyond_tolerance(self):
        loose_packets(self.product, 8, "PKT-A")

        report = validate_stock_sync(self.product)

        self.assertFalse(report["is_valid"])
        self.assertEqual(report["difference"], 2)
        self.assertIn("2 more item(s)", report["message"])

    @override_settings(STOCK_SYNC_TOLERANCE=0)
    def test_tolerance_is_configurable(self):
        loose_packets(self.product, 9, "PKT-A")
        self.assertFalse(validate_stock_sync(self.product)["is_valid"])

    def test_inactive_packets_do_not_count(self):
        loose_packets(self.product, 10, "PKT-A")
        PacketStock.objects.filter(barcode="PKT-A").update(is_active=False)

        self.assertEqual(validate_stock_sync(self.product)["packet_stock_items"], 0)

    def test_missing_inventory(self):
        bare = make_product(self.product.supplier, code="NO-STOCK")
        with self.assertRaises(InventoryNotFoundError):
            validate_stock_sync(bare)


class ReconcileTests(TestCase):
    def setUp(self):
        self.product = make_product(make_supplier())
        stock_in(self.product, 10, "5.00")
        loose_packets(self.product, 8, "PKT-A")

    def test_reconcile_from_packets(self):
        result = reconcile_stock(self.product, source="packets")

        self.assertTrue(result["adjusted"])
        self.assertEqual(result["previous_stock"], 10)
        self.assertEqual(result["new_stock"], 8)
        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 8)

        adjustment = StockMovement.objects.get(movement_type=StockMovement.MovementType.ADJUSTMENT)
        self.assertEqual(adjustment.quantity, -2)
        self.assertEqual(adjustment.reference, StockMovement.Reference.STOCK_RECONCILIATION)

    def test_reconcile_is_idempotent(self):
        reconcile_stock(self.product, source="packets")
        again = reconcile_stock(self.product, source="packets")

        self.assertFalse(again["adjusted"])
        self.assertEqual(
            StockMovement.objects.filter(movement_type=StockMovement.MovementType.ADJUSTMENT).count(),
            1,
        )

    def test_inventory_direction_is_refused(self):
        with self.assertRaises(UnsupportedReconciliationDirectionError):
            reconcile_stock(self.product, source="inventory")

        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 10)

    def test_unknown_source_is_refused(self):
        with self.assertRaises(UnsupportedReconciliationDirectionError):
            reconcile_stock(self.product, source="variants")


class LowStockAlertTests(TestCase):
    def setUp(self):
        supplier = make_supplier()
        self.empty = make_product(supplier, code="EMPTY")
        get_or_create_inventory(self.empty)

        self.low = make_product(supplier, code="LOW")
        stock_in(self.low, 4, "3.00")

        self.mid = make_product(supplier, code="MID")
        stock_in(self.mid, 7, "3.00")
        Inventory.objects.filter(product=self.mid).update(reorder_level=10)

        self.ok = make_product(supplier, code="OK")
        stock_in(self.ok, 50, "3.00")

        PacketStock.objects.create(
            product=self.ok,
            supplier=supplier,
            barcode="PKT-OK-1",
            composition=[{"size": "M", "color": "Red", "quantity": 2}],
            items_per_packet=2,
            available_packets=2,
        )

    def _by_code(self, rows):
        return {r["product_code"]: r["severity"] for r in rows}

    def test_inventory_tiers(self):
        alerts = get_low_stock_alerts()

        tiers = self._by_code(alerts["inventory"])
        self.assertEqual(tiers["EMPTY"], "critical")
        self.assertEqual(tiers["LOW"], "high")
        self.assertEqual(tiers["MID"], "medium")
        self.assertNotIn("OK", tiers)

    def test_packet_alerts_use_threshold(self):
        alerts = get_low_stock_alerts(threshold=5)
        self.assertEqual(alerts["packets"][0]["barcode"], "PKT-OK-1")
        self.assertEqual(alerts["packets"][0]["severity"], "high")

        self.assertEqual(get_low_stock_alerts(threshold=1)["packets"], [])

    def test_packets_can_be_excluded(self):
        alerts = get_low_stock_alerts(include_packets=False)

        self.assertEqual(alerts["packets"], [])
        self.assertEqual(alerts["summary"]["critical"], 1)
        self.assertEqual(alerts["summary"]["high"], 1)
        self.assertEqual(alerts["summary"]["medium"], 1)

    def test_loose_rows_are_scanned(self):
        loose_packets(self.ok, 1, "PKT-OK-LOOSE")

        alerts = get_low_stock_alerts(threshold=5)
        loose = [p for p in alerts["packets"] if p["barcode"] == "PKT-OK-LOOSE"]

        self.assertEqual(len(loose), 1)
        self.assertTrue(loose[0]["is_loose"])
        self.assertEqual(loose[0]["severity"], "high")

# products/tests/test_commands.py

from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from products.models import Inventory
from products.tests._factories import make_product, make_supplier, stock_in


class ValidateInventoryCommandTests(TestCase):
    def setUp(self):
        self.product = make_product(make_supplier())
        stock_in(self.product, 5, "10.00")

    def _run(self, *args):
        out, err = StringIO(), StringIO()
        call_command("validate_inventory", *args, stdout=out, stderr=err)
        return out.getvalue(), err.getvalue()

    def test_consistent_inventory_passes(self):
        out, err = self._run("--strict")
        self.assertIn("[OK]", out)
        self.assertEqual(err, "")

    def test_drift_fails_in_strict_mode(self):
        Inventory.objects.filter(product=self.product).update(current_stock=9)

        with self.assertRaises(SystemExit):
            self._run("--strict")

        _, err = self._run()
        self.assertIn("batch_total=5", err)


class CheckStockSyncCommandTests(TestCase):
    def setUp(self):
        self.product = make_product(make_supplier())
        stock_in(self.product, 5, "10.00")

    def test_reports_drift(self):
        with self.assertRaises(SystemExit):
            call_command("check_stock_sync", "--strict", stdout=StringIO(), stderr=StringIO())

    def test_reconcile_from_packets(self):
        out = StringIO()
        call_command("check_stock_sync", "--reconcile", "--strict", stdout=out, stderr=StringIO())

        self.assertIn("reconciled 5 -> 0", out.getvalue())
        self.assertEqual(Inventory.objects.get(product=self.product).current_stock, 0)

# products/tests/test_costing.py

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from products.services.costing import (
    fifo_order,
    plan_fifo_consumption,
    to_int_qty,
    to_positive_qty,
    weighted_average_cost,
)
from products.services.exceptions import BatchExhaustionError, InvalidQuantityError

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _batch(name, remaining, cost, *, days=0):
    return SimpleNamespace(
        id=name,
        purchase_date=T0 + timedelta(days=days),
        remaining_quantity=remaining,
        cost_price=Decimal(cost),
        landed_price=None,
        supplier_id=None,
    )


class FifoPlanTests(SimpleTestCase):
    """Pure FIFO walk: no database."""

    def setUp(self):
        self.old = _batch("old", 5, "10.00", days=0)
        self.new = _batch("new", 5, "20.00", days=3)

    def test_consumes_oldest_batch_first(self):
        plan = plan_fifo_consumption([self.new, self.old], 7)

        self.assertEqual([a.batch_id for a in plan.allocations], ["old", "new"])
        self.assertEqual([a.quantity_taken for a in plan.allocations], [5, 2])
        self.assertEqual(plan.total_cost, Decimal("90.00"))
        self.assertEqual(plan.average_cost_per_unit, Decimal("12.86"))

    def test_exact_single_batch_consumption(self):
        plan = plan_fifo_consumption([self.old, self.new], 5)
        self.assertEqual(len(plan.allocations), 1)
        self.assertEqual(plan.total_cost, Decimal("50.00"))

    def test_exhausted_batches_are_skipped(self):
        empty = _batch("empty", 0, "1.00", days=-10)
        self.assertEqual([b.id for b in fifo_order([empty, self.new, self.old])], ["old", "new"])

    def test_walk_beyond_batches_raises(self):
        with self.assertRaises(BatchExhaustionError):
            plan_fifo_consumption([self.old, self.new], 11)

    def test_landed_price_falls_back_to_cost(self):
        plan = plan_fifo_consumption([self.old], 1)
        self.assertEqual(plan.allocations[0].landed_price, Decimal("10.00"))


class WeightedAverageTests(SimpleTestCase):
    def test_average_over_remaining_units(self):
        batches = [_batch("a", 5, "10.00"), _batch("b", 5, "20.00")]
        self.assertEqual(weighted_average_cost(batches), Decimal("15.00"))

    def test_exhausted_batches_do_not_count(self):
        batches = [_batch("a", 0, "10.00"), _batch("b", 3, "20.00")]
        self.assertEqual(weighted_average_cost(batches), Decimal("20.00"))

    def test_fallback_when_nothing_remains(self):
        self.assertEqual(weighted_average_cost([], fallback="12.5"), Decimal("12.50"))
        self.assertIsNone(weighted_average_cost([]))


class QuantityNormalizationTests(SimpleTestCase):
    def test_accepts_whole_units(self):
        self.assertEqual(to_int_qty("4"), 4)
        self.assertEqual(to_int_qty(Decimal("3")), 3)

    def test_rejects_fractions_and_bools(self):
        for bad in ("1.5", Decimal("2.5"), True, None, ""):
            with self.assertRaises(InvalidQuantityError):
                to_int_qty(bad)

    def test_positive_quantity_required(self):
        with self.assertRaises(InvalidQuantityError):
            to_positive_qty(0)

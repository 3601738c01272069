# purchases/tests/test_confirmation.py

from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from accounting.models import LedgerEntry
from accounting.services.balance_service import get_balance, get_logistics_balance, get_supplier_balance
from packets.models import PacketStock
from packets.selectors import packet_item_total
from products.models import Inventory, Product, PurchaseBatch, VariantStock
from products.services.stock_sync import validate_stock_sync
from products.tests._factories import make_supplier, make_user
from purchases.models import DispatchOrder
from purchases.selectors import get_order_balance_summary
from purchases.services.confirmation_service import confirm_dispatch_order, landed_price
from purchases.services.exceptions import (
    DispatchOrderConfirmationError,
    DispatchOrderNotFoundError,
    PurchasesServiceError,
)
from purchases.services.order_service import cancel_dispatch_order
from purchases.services.payment_service import distribute_supplier_payment
from purchases.services.return_service import create_order_return
from purchases.tests._factories import line, make_logistics, pending_order

SUPPLIER = LedgerEntry.EntityType.SUPPLIER

TEE_PACKETS = [
    {
        "composition": [
            {"size": "M", "color": "Red", "quantity": 2},
            {"size": "L", "color": "Red", "quantity": 2},
        ],
        "count": 2,
    }
]


class LandedPriceTests(SimpleTestCase):
    def test_exchange_rate_and_markup(self):
        self.assertEqual(
            landed_price(Decimal("10.00"), exchange_rate=Decimal("1"), percentage=Decimal("10")),
            Decimal("11.00"),
        )
        self.assertEqual(
            landed_price(Decimal("280.00"), exchange_rate=Decimal("280"), percentage=Decimal("0")),
            Decimal("1.00"),
        )

    def test_rejects_zero_rate(self):
        with self.assertRaises(DispatchOrderConfirmationError):
            landed_price(Decimal("1.00"), exchange_rate=Decimal("0"), percentage=Decimal("0"))


class ConfirmDispatchOrderTests(TestCase):
    """
    Confirmation is all-or-nothing.

    GUARANTEES:
    - one batch per line at supplier cost, landed price on batch + product
    - variants and packets registered so stock sync holds afterwards
    - purchase debit, payments, credit and logistics charge posted
    """

    def setUp(self):
        self.user = make_user()
        self.supplier = make_supplier()
        self.order = pending_order(
            self.supplier,
            [
                line("TS-100", "10.00", 10, packets=TEE_PACKETS, name="Crew neck tee"),
                line("JN-200", "25.00", 4, name="Slim jeans"),
            ],
            percentage=Decimal("10"),
        )

    def _confirm(self, **kwargs):
        return confirm_dispatch_order(order_id=self.order.pk, user=self.user, **kwargs)

    def test_creates_products_batches_and_stock(self):
        result = self._confirm()

        self.assertEqual(result["status"], DispatchOrder.Status.CONFIRMED)
        self.assertEqual(len(result["lines"]), 2)

        tee = Product.objects.get(supplier=self.supplier, code="TS-100")
        self.assertEqual(tee.cost_price, Decimal("11.00"))

        batch = PurchaseBatch.objects.get(product=tee)
        self.assertEqual(batch.quantity, 10)
        self.assertEqual(batch.cost_price, Decimal("10.00"))
        self.assertEqual(batch.landed_price, Decimal("11.00"))
        self.assertEqual(batch.dispatch_order_id, self.order.pk)

        self.assertEqual(Inventory.objects.get(product=tee).current_stock, 10)

        item = self.order.items.get(line_number=1)
        self.assertEqual(item.batch_id, batch.id)
        self.assertEqual(item.confirmed_quantity, 10)

    def test_variants_and_packets_match_inventory(self):
        self._confirm()
        tee = Product.objects.get(code="TS-100")

        cells = {(v.size, v.color): v.quantity for v in VariantStock.objects.filter(inventory__product=tee)}
        self.assertEqual(cells, {("M", "Red"): 4, ("L", "Red"): 4})

        self.assertEqual(PacketStock.objects.filter(product=tee, is_loose=False).get().available_packets, 2)
        self.assertEqual(PacketStock.objects.filter(product=tee, is_loose=True).get().available_packets, 2)
        self.assertEqual(packet_item_total(tee), 10)
        self.assertTrue(validate_stock_sync(tee)["is_valid"])

    def test_posts_purchase_debit_at_supplier_cost(self):
        result = self._confirm()

        self.assertEqual(result["order_value"], Decimal("200.00"))
        purchase = LedgerEntry.objects.get(transaction_type=LedgerEntry.TransactionType.PURCHASE)
        self.assertEqual(purchase.debit, Decimal("200.00"))
        self.assertEqual(purchase.reference_id, self.order.pk)
        self.assertEqual(get_supplier_balance(self.supplier.pk), Decimal("200.00"))

    def test_discount_reduces_order_value(self):
        result = self._confirm(total_discount=Decimal("20"))
        self.assertEqual(result["order_value"], Decimal("180.00"))

    def test_partial_payment_at_confirmation(self):
        result = self._confirm(cash_payment=Decimal("50"), bank_payment=Decimal("30"))

        self.assertEqual(result["paid"], Decimal("80.00"))
        self.assertEqual(result["remaining"], Decimal("120.00"))

        summary = get_order_balance_summary(self.order)
        self.assertEqual(summary["payments"]["cash"], Decimal("50.00"))
        self.assertEqual(summary["payments"]["bank"], Decimal("30.00"))
        self.assertEqual(summary["payment_status"], "partial")
        self.assertEqual(get_supplier_balance(self.supplier.pk), Decimal("120.00"))

    def test_overpayment_becomes_advance_credit(self):
        result = self._confirm(cash_payment=Decimal("250"))

        self.assertEqual(result["paid"], Decimal("200.00"))
        self.assertEqual(result["remaining"], Decimal("0.00"))
        advance = LedgerEntry.objects.get(reference_id__isnull=True)
        self.assertEqual(advance.credit, Decimal("50.00"))
        self.assertEqual(get_supplier_balance(self.supplier.pk), Decimal("-50.00"))

    def test_held_credit_settles_new_order(self):
        distribute_supplier_payment(supplier_id=self.supplier.pk, amount=Decimal("200"), payment_method="bank")
        self.assertEqual(get_supplier_balance(self.supplier.pk), Decimal("-200.00"))

        order = pending_order(self.supplier, [line("SK-1", "15.00", 10)])
        result = confirm_dispatch_order(order_id=order.pk, user=self.user)

        self.assertEqual(result["credit_applied"], Decimal("150.00"))
        self.assertEqual(result["remaining"], Decimal("0.00"))
        self.assertEqual(get_supplier_balance(self.supplier.pk), Decimal("-50.00"))
        self.assertEqual(get_order_balance_summary(order)["payment_status"], "paid")

        applications = LedgerEntry.objects.filter(
            transaction_type=LedgerEntry.TransactionType.CREDIT_APPLICATION, reference_id=order.pk
        )
        self.assertEqual(applications.count(), 2)
        self.assertEqual(sum(e.signed_amount for e in applications), Decimal("0.00"))

    def test_logistics_charge_per_box(self):
        company = make_logistics(box_rate="12.50")
        order = pending_order(
            self.supplier,
            [line("BX-1", "5.00", 2)],
            logistics_company_id=company.pk,
            total_boxes=4,
        )

        result = confirm_dispatch_order(order_id=order.pk)

        self.assertEqual(result["logistics_charge"], Decimal("50.00"))
        self.assertEqual(get_logistics_balance(company.pk), Decimal("50.00"))

    def test_pre_confirmation_return_reduces_confirmed_quantity(self):
        jeans = self.order.items.get(line_number=2)
        ret = create_order_return(
            order_id=self.order.pk, items=[{"item_id": jeans.id, "quantity": 1}], user=self.user
        )
        self.assertFalse(ret.stock_applied)
        self.assertFalse(LedgerEntry.objects.exists())

        result = self._confirm()

        self.assertEqual(result["order_value"], Decimal("175.00"))
        self.assertEqual(Inventory.objects.get(product__code="JN-200").current_stock, 3)

    def test_line_failure_rolls_back_everything(self):
        tee = self.order.items.get(line_number=1)
        create_order_return(order_id=self.order.pk, items=[{"item_id": tee.id, "quantity": 3}])

        with self.assertRaises(DispatchOrderConfirmationError) as ctx:
            self._confirm(cash_payment=Decimal("10"))

        self.assertEqual(len(ctx.exception.failures), 1)
        self.assertEqual(ctx.exception.failures[0]["line_number"], 1)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, DispatchOrder.Status.PENDING)
        self.assertFalse(PurchaseBatch.objects.exists())
        self.assertFalse(Product.objects.exists())
        self.assertFalse(LedgerEntry.objects.exists())

    def test_cannot_confirm_twice(self):
        self._confirm()
        with self.assertRaises(DispatchOrderConfirmationError):
            self._confirm()
        self.assertEqual(PurchaseBatch.objects.count(), 2)

    def test_unknown_order(self):
        with self.assertRaises(DispatchOrderNotFoundError):
            confirm_dispatch_order(order_id=self.supplier.pk)


class OrderLifecycleTests(TestCase):
    def setUp(self):
        self.supplier = make_supplier()

    def test_order_number_is_generated(self):
        order = pending_order(self.supplier, [line("A-1", "1.00", 1)])
        self.assertTrue(order.order_number.startswith("DO-"))
        self.assertEqual(order.status, DispatchOrder.Status.PENDING)

    def test_packets_cannot_exceed_line_quantity(self):
        with self.assertRaises(PurchasesServiceError):
            pending_order(self.supplier, [line("A-1", "1.00", 3, packets=TEE_PACKETS)])

    def test_cancel_pending_only(self):
        order = pending_order(self.supplier, [line("A-1", "1.00", 1)])
        cancel_dispatch_order(order_id=order.pk)
        order.refresh_from_db()
        self.assertEqual(order.status, DispatchOrder.Status.CANCELLED)

        with self.assertRaises(DispatchOrderConfirmationError):
            confirm_dispatch_order(order_id=order.pk)
        with self.assertRaises(PurchasesServiceError):
            cancel_dispatch_order(order_id=order.pk)

    def test_cancelled_order_posts_nothing(self):
        order = pending_order(self.supplier, [line("A-1", "1.00", 1)])
        cancel_dispatch_order(order_id=order.pk)
        self.assertEqual(get_balance(SUPPLIER, self.supplier.pk), Decimal("0.00"))

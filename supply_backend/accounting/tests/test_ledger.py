# accounting/tests/test_ledger.py

import uuid
from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from accounting.models import LedgerEntry
from accounting.services.balance_service import (
    get_balance,
    get_balance_excluding_order,
    get_entity_dashboard,
    get_entity_statement,
    get_order_payments,
    get_order_remaining_balance,
    get_payment_totals_by_method,
    get_total_balance,
)
from accounting.services.exceptions import BalanceServiceError, InvalidLedgerEntryError
from accounting.services.ledger_service import append_entry
from accounting.services.posting import (
    record_credit_application,
    record_debit_adjustment,
    record_logistics_charge,
    record_payment,
    record_return,
)

SUPPLIER = LedgerEntry.EntityType.SUPPLIER
TT = LedgerEntry.TransactionType


class LedgerEntryIntegrityTests(TestCase):
    """
    Ledger integrity.

    GUARANTEES:
    - one side per entry, never negative
    - entries are immutable once written
    """

    def setUp(self):
        self.entity_id = uuid.uuid4()

    def test_debit_xor_credit(self):
        with self.assertRaises(InvalidLedgerEntryError):
            append_entry(
                entity_type=SUPPLIER,
                entity_id=self.entity_id,
                transaction_type=TT.ADJUSTMENT,
                debit=Decimal("10"),
                credit=Decimal("5"),
            )

    def test_negative_amounts_rejected(self):
        with self.assertRaises(InvalidLedgerEntryError):
            append_entry(
                entity_type=SUPPLIER,
                entity_id=self.entity_id,
                transaction_type=TT.ADJUSTMENT,
                debit=Decimal("-1"),
            )

    def test_unknown_entity_type(self):
        with self.assertRaises(InvalidLedgerEntryError):
            append_entry(entity_type="bank", entity_id=self.entity_id, transaction_type=TT.PAYMENT, credit=1)

    def test_model_clean_rejects_both_sides(self):
        entry = LedgerEntry(
            entity_type=SUPPLIER,
            entity_id=self.entity_id,
            transaction_type=TT.ADJUSTMENT,
            debit=Decimal("1.00"),
            credit=Decimal("1.00"),
        )
        with self.assertRaises(ValidationError):
            entry.save()

    def test_entries_are_immutable(self):
        entry = append_entry(
            entity_type=SUPPLIER,
            entity_id=self.entity_id,
            transaction_type=TT.ADJUSTMENT,
            debit=Decimal("10"),
            description="Opening balance",
        )

        entry.description = "edited"
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(ValidationError):
            entry.delete()

        self.assertEqual(LedgerEntry.objects.get(pk=entry.pk).description, "Opening balance")

    def test_amounts_are_rounded_to_cents(self):
        entry = append_entry(
            entity_type=SUPPLIER,
            entity_id=self.entity_id,
            transaction_type=TT.ADJUSTMENT,
            debit="10.005",
        )
        self.assertEqual(entry.debit, Decimal("10.01"))


class BalanceCalculatorTests(TestCase):
    def setUp(self):
        self.supplier_id = uuid.uuid4()
        self.order_a = uuid.uuid4()
        self.order_b = uuid.uuid4()

        base = timezone.now() - timedelta(days=10)
        append_entry(
            entity_type=SUPPLIER,
            entity_id=self.supplier_id,
            transaction_type=TT.PURCHASE,
            reference_model=LedgerEntry.ReferenceModel.DISPATCH_ORDER,
            reference_id=self.order_a,
            debit=Decimal("1000"),
            date=base,
        )
        append_entry(
            entity_type=SUPPLIER,
            entity_id=self.supplier_id,
            transaction_type=TT.PURCHASE,
            reference_model=LedgerEntry.ReferenceModel.DISPATCH_ORDER,
            reference_id=self.order_b,
            debit=Decimal("500"),
            date=base + timedelta(days=1),
        )
        record_payment(
            entity_type=SUPPLIER,
            entity_id=self.supplier_id,
            amount=Decimal("500"),
            payment_method="cash",
            order_id=self.order_a,
            order_number="DO-A",
            date=base + timedelta(days=2),
        )
        record_payment(
            entity_type=SUPPLIER,
            entity_id=self.supplier_id,
            amount=Decimal("300"),
            payment_method="bank",
            order_id=self.order_a,
            order_number="DO-A",
            date=base + timedelta(days=3),
        )

    def test_balance_is_debits_minus_credits(self):
        self.assertEqual(get_balance(SUPPLIER, self.supplier_id), Decimal("700.00"))

    def test_as_of_cutoff(self):
        cutoff = timezone.now() - timedelta(days=8, hours=12)
        self.assertEqual(get_balance(SUPPLIER, self.supplier_id, as_of=cutoff), Decimal("1500.00"))

    def test_unknown_entity_has_zero_balance(self):
        self.assertEqual(get_balance(SUPPLIER, uuid.uuid4()), Decimal("0.00"))

    def test_missing_entity_id(self):
        with self.assertRaises(BalanceServiceError):
            get_balance(SUPPLIER, None)

    def test_order_payments_by_method(self):
        payments = get_order_payments(self.order_a)
        self.assertEqual(payments["cash"], Decimal("500.00"))
        self.assertEqual(payments["bank"], Decimal("300.00"))
        self.assertEqual(payments["total"], Decimal("800.00"))

        self.assertEqual(get_order_remaining_balance(self.order_a, Decimal("1000")), Decimal("200.00"))

    def test_balance_excluding_order(self):
        self.assertEqual(
            get_balance_excluding_order(SUPPLIER, self.supplier_id, order_id=self.order_a),
            Decimal("500.00"),
        )

    def test_statement_running_balance(self):
        rows = get_entity_statement(SUPPLIER, self.supplier_id)
        self.assertEqual([r["balance"] for r in rows], [
            Decimal("1000.00"),
            Decimal("1500.00"),
            Decimal("1000.00"),
            Decimal("700.00"),
        ])

    def test_dashboard_and_method_totals(self):
        dashboard = get_entity_dashboard(SUPPLIER, self.supplier_id)
        self.assertEqual(dashboard["total_purchases"], Decimal("1500.00"))
        self.assertEqual(dashboard["total_payments"], Decimal("800.00"))
        self.assertEqual(dashboard["entry_count"], 4)

        methods = get_payment_totals_by_method(SUPPLIER, self.supplier_id)
        self.assertEqual(methods, {"cash": Decimal("500.00"), "bank": Decimal("300.00"), "total": Decimal("800.00")})

    def test_total_balance_splits_payable_and_receivable(self):
        other = uuid.uuid4()
        record_payment(entity_type=SUPPLIER, entity_id=other, amount=Decimal("40"), payment_method="cash")

        totals = get_total_balance(SUPPLIER)
        self.assertEqual(totals["entity_count"], 2)
        self.assertEqual(totals["total_payable"], Decimal("700.00"))
        self.assertEqual(totals["total_receivable"], Decimal("40.00"))
        self.assertEqual(totals["net_balance"], Decimal("660.00"))

    def test_total_balance_rejects_unknown_type(self):
        with self.assertRaises(BalanceServiceError):
            get_total_balance("bank")


class PostingRuleTests(TestCase):
    def setUp(self):
        self.entity_id = uuid.uuid4()

    def test_credit_application_pair_is_balance_neutral(self):
        order_id = uuid.uuid4()
        consume, settle = record_credit_application(
            entity_type=SUPPLIER,
            entity_id=self.entity_id,
            order_id=order_id,
            order_number="DO-1",
            amount=Decimal("75"),
        )

        self.assertEqual(consume.debit, Decimal("75.00"))
        self.assertEqual(settle.credit, Decimal("75.00"))
        self.assertEqual(get_balance(SUPPLIER, self.entity_id), Decimal("0.00"))
        self.assertEqual(get_order_payments(order_id)["credit"], Decimal("75.00"))

    def test_adjustment_requires_description(self):
        with self.assertRaises(InvalidLedgerEntryError):
            record_debit_adjustment(entity_type=SUPPLIER, entity_id=self.entity_id, amount=10, description=" ")

        entry = record_debit_adjustment(
            entity_type=SUPPLIER, entity_id=self.entity_id, amount=10, description="Freight recharge"
        )
        self.assertEqual(entry.transaction_type, TT.ADJUSTMENT)
        self.assertEqual(get_balance(SUPPLIER, self.entity_id), Decimal("10.00"))

    def test_zero_logistics_charge_posts_nothing(self):
        company = type("Company", (), {"pk": self.entity_id})()
        entry = record_logistics_charge(
            company=company, order_id=uuid.uuid4(), order_number="DO-1", total_boxes=0, box_rate="10"
        )
        self.assertIsNone(entry)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_return_without_reference(self):
        supplier = type("Supplier", (), {"pk": self.entity_id, "name": "Lahore Textiles"})()
        entry = record_return(supplier=supplier, amount=Decimal("12.5"))
        self.assertEqual(entry.reference_model, "")
        self.assertEqual(entry.credit, Decimal("12.50"))

    def test_payment_amount_must_be_positive(self):
        with self.assertRaises(InvalidLedgerEntryError):
            record_payment(entity_type=SUPPLIER, entity_id=self.entity_id, amount=0, payment_method="cash")

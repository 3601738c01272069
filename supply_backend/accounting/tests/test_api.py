# accounting/tests/test_api.py

import uuid
from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import LedgerEntry
from accounting.services.posting import record_payment
from products.tests._factories import make_supplier, make_user
from purchases.tests._factories import confirmed_order

SUPPLIER = LedgerEntry.EntityType.SUPPLIER


class AccountingApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=make_user())

        self.supplier = make_supplier()
        self.order = confirmed_order(self.supplier, "A-1", "10.00", 10)
        record_payment(
            entity_type=SUPPLIER,
            entity_id=self.supplier.pk,
            amount=Decimal("30"),
            payment_method="cash",
            order_id=self.order.pk,
            order_number=self.order.order_number,
        )

    def test_ledger_entries_filter(self):
        res = self.client.get(
            "/api/accounting/ledger-entries/",
            {"entity_id": str(self.supplier.pk), "transaction_type": "payment"},
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["credit"], "30.00")
        self.assertEqual(res.data["results"][0]["signed_amount"], "-30.00")

    def test_ledger_is_read_only(self):
        res = self.client.post("/api/accounting/ledger-entries/", {}, format="json")
        self.assertEqual(res.status_code, 405)

    def test_entity_balance(self):
        res = self.client.get(f"/api/accounting/balances/supplier/{self.supplier.pk}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["balance"], Decimal("70.00"))
        self.assertEqual(res.data["dashboard"]["total_purchases"], Decimal("100.00"))
        self.assertEqual(res.data["payments_by_method"]["cash"], Decimal("30.00"))

    def test_statement(self):
        res = self.client.get(f"/api/accounting/balances/supplier/{self.supplier.pk}/statement/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["entries"]), 2)
        self.assertEqual(res.data["closing_balance"], Decimal("70.00"))

    def test_unknown_entity_type(self):
        res = self.client.get(f"/api/accounting/balances/bank/{uuid.uuid4()}/")
        self.assertEqual(res.status_code, 400)

        totals = self.client.get("/api/accounting/balances/bank/")
        self.assertEqual(totals.status_code, 400)

    def test_totals(self):
        res = self.client.get("/api/accounting/balances/supplier/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["total_payable"], Decimal("70.00"))

    def test_debit_adjustment(self):
        res = self.client.post(
            "/api/accounting/adjustments/",
            {
                "entity_type": "supplier",
                "entity_id": str(self.supplier.pk),
                "amount": "15.00",
                "description": "Late delivery fee reversal",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["transaction_type"], "adjustment")

        balance = self.client.get(f"/api/accounting/balances/supplier/{self.supplier.pk}/")
        self.assertEqual(balance.data["balance"], Decimal("85.00"))

    def test_adjustment_validation(self):
        res = self.client.post(
            "/api/accounting/adjustments/",
            {"entity_type": "supplier", "entity_id": str(self.supplier.pk), "amount": "0"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

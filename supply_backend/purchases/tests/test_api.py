# purchases/tests/test_api.py

from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from products.tests._factories import make_supplier, make_user
from purchases.models import DispatchOrder
from purchases.tests._factories import make_logistics

ORDERS = "/api/purchases/orders/"


class PurchasesApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.client.force_authenticate(user=self.user)
        self.supplier = make_supplier()

    def _create_order(self, **extra):
        payload = {
            "supplier_id": str(self.supplier.id),
            "items": [
                {
                    "product_code": "TS-100",
                    "product_name": "Crew neck tee",
                    "cost_price": "10.00",
                    "quantity": 6,
                    "packets": [
                        {"composition": [{"size": "M", "color": "Red", "quantity": 2}], "count": 2},
                    ],
                },
            ],
            **extra,
        }
        return self.client.post(ORDERS, payload, format="json")

    def test_create_and_confirm_order(self):
        created = self._create_order()
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["status"], "pending")
        order_id = created.data["id"]

        confirmed = self.client.post(f"{ORDERS}{order_id}/confirm/", {"cash_payment": "20.00"}, format="json")
        self.assertEqual(confirmed.status_code, 200)
        self.assertEqual(confirmed.data["order_value"], Decimal("60.00"))
        self.assertEqual(confirmed.data["remaining"], Decimal("40.00"))

        detail = self.client.get(f"{ORDERS}{order_id}/")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.data["status"], "confirmed")
        self.assertEqual(detail.data["balance"]["payment_status"], "partial")

    def test_create_without_header_values_uses_defaults(self):
        created = self._create_order()
        self.assertEqual(created.status_code, 201)

        order = DispatchOrder.objects.get(pk=created.data["id"])
        self.assertEqual(order.exchange_rate, Decimal("1.0000"))
        self.assertEqual(order.percentage, Decimal("0.00"))
        self.assertEqual(order.total_discount, Decimal("0.00"))

    def test_create_rejects_non_positive_exchange_rate(self):
        res = self._create_order(exchange_rate="0")
        self.assertEqual(res.status_code, 400)
        self.assertIn("exchange_rate", res.data)

    def test_confirming_twice_is_409(self):
        order_id = self._create_order().data["id"]
        self.client.post(f"{ORDERS}{order_id}/confirm/", {}, format="json")

        again = self.client.post(f"{ORDERS}{order_id}/confirm/", {}, format="json")
        self.assertEqual(again.status_code, 409)

    def test_unknown_order_is_404(self):
        res = self.client.get(f"{ORDERS}{self.supplier.id}/")
        self.assertEqual(res.status_code, 404)

    def test_create_rejects_empty_items(self):
        res = self.client.post(ORDERS, {"supplier_id": str(self.supplier.id), "items": []}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_order_return_and_product_return(self):
        order_id = self._create_order().data["id"]
        self.client.post(f"{ORDERS}{order_id}/confirm/", {}, format="json")
        order = DispatchOrder.objects.get(id=order_id)
        item = order.items.get()

        ret = self.client.post(
            f"{ORDERS}{order_id}/returns/",
            {"items": [{"item_id": str(item.id), "quantity": 1}], "reason": "Torn"},
            format="json",
        )
        self.assertEqual(ret.status_code, 201)
        self.assertEqual(ret.data["total_value"], "10.00")

        product_ret = self.client.post(
            "/api/purchases/returns/",
            {"supplier_id": str(self.supplier.id), "items": [{"product_id": str(item.product_id), "quantity": 1}]},
            format="json",
        )
        self.assertEqual(product_ret.status_code, 201)

        listing = self.client.get("/api/purchases/returns/", {"supplier_id": str(self.supplier.id)})
        self.assertEqual(listing.data["count"], 2)

    def test_payment_distribution_and_dashboard(self):
        order_id = self._create_order().data["id"]
        self.client.post(f"{ORDERS}{order_id}/confirm/", {}, format="json")

        base = f"/api/purchases/suppliers/{self.supplier.id}"
        paid = self.client.post(f"{base}/payments/", {"amount": "100.00", "payment_method": "bank"}, format="json")
        self.assertEqual(paid.status_code, 201)
        self.assertEqual(paid.data["remaining_credit"], Decimal("40.00"))
        self.assertEqual(paid.data["new_balance"], Decimal("-40.00"))

        pending = self.client.get(f"{base}/pending-orders/")
        self.assertEqual(pending.data["count"], 0)

        dashboard = self.client.get(f"{base}/dashboard/")
        self.assertEqual(dashboard.status_code, 200)
        self.assertEqual(dashboard.data["orders"]["confirmed"], 1)

    def test_payment_validation(self):
        res = self.client.post(
            f"/api/purchases/suppliers/{self.supplier.id}/payments/",
            {"amount": "0", "payment_method": "cash"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_logistics_charges_and_payment(self):
        company = make_logistics(box_rate="5.00")
        order_id = self._create_order(logistics_company_id=str(company.id), total_boxes=3).data["id"]
        self.client.post(f"{ORDERS}{order_id}/confirm/", {}, format="json")

        base = f"/api/purchases/logistics/{company.id}"
        charges = self.client.get(f"{base}/pending-charges/")
        self.assertEqual(charges.data["results"][0]["charge"], Decimal("15.00"))

        paid = self.client.post(f"{base}/payments/", {"amount": "15.00", "payment_method": "cash"}, format="json")
        self.assertEqual(paid.status_code, 201)
        self.assertEqual(paid.data["new_balance"], Decimal("0.00"))

    def test_cancel(self):
        order_id = self._create_order().data["id"]
        res = self.client.post(f"{ORDERS}{order_id}/cancel/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], "cancelled")

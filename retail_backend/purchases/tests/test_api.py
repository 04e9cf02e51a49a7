# purchases/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Product
from purchases.models import Purchase, Supplier

User = get_user_model()


class PurchaseApiTests(TestCase):
    """
    /api/purchases/

    GUARANTEES:
    - Suppliers are created with balance = opening balance
    - Purchases return their stock adjustments
    - DELETE without ?confirm=true is refused and changes nothing
    - Supplier ledgers label a payable balance "Cr"
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="purchaser", password="pass")
        self.client.force_authenticate(self.user)

        response = self.client.post(
            "/api/purchases/suppliers/",
            {"name": "Medplus Distributors", "opening_balance": "100.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.supplier_id = response.data["id"]

    def _purchase(self, invoice="INV-77"):
        return self.client.post(
            "/api/purchases/purchases/",
            {
                "supplier_id": self.supplier_id,
                "invoice_number": invoice,
                "invoice_date": "2025-07-01",
                "items": [
                    {
                        "product_name": "Pantoprazole 40",
                        "company": "Sun Pharma",
                        "gst": "12.00",
                        "units_per_strip": 10,
                        "batch_number": "PAN-5",
                        "expiry_date": "2029-12",
                        "quantity": 10,
                        "mrp": "120.00",
                        "purchase_price": "80.00",
                    }
                ],
            },
            format="json",
        )

    def test_supplier_created(self):
        supplier = Supplier.objects.get(pk=self.supplier_id)
        self.assertEqual(supplier.balance, Decimal("100.00"))

        response = self.client.post(
            "/api/purchases/suppliers/", {"name": "medplus distributors"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_create_purchase(self):
        response = self._purchase()

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["purchase"]["total_amount"], "800.00")
        self.assertEqual(response.data["stock_adjustments"][0]["quantity_delta"], 100)
        self.assertEqual(Product.objects.get(name="Pantoprazole 40").total_stock, 100)
        self.assertEqual(Supplier.objects.get(pk=self.supplier_id).balance, Decimal("900.00"))

    def test_duplicate_invoice_is_400(self):
        self._purchase()
        self.assertEqual(self._purchase().status_code, 400)

    def test_delete_needs_confirmation(self):
        purchase_id = self._purchase().data["purchase"]["id"]

        response = self.client.delete(f"/api/purchases/purchases/{purchase_id}/")
        self.assertEqual(response.status_code, 400)
        self.assertTrue(Purchase.objects.filter(pk=purchase_id).exists())

        response = self.client.delete(f"/api/purchases/purchases/{purchase_id}/?confirm=true")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["stock_reverted"])
        self.assertEqual(Product.objects.get(name="Pantoprazole 40").total_stock, 100)
        self.assertEqual(Supplier.objects.get(pk=self.supplier_id).balance, Decimal("100.00"))

    def test_missing_purchase_is_404(self):
        response = self.client.get("/api/purchases/purchases/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, 404)

    def test_payment_and_ledger(self):
        self._purchase()
        response = self.client.post(
            "/api/purchases/payments/",
            {"supplier_id": self.supplier_id, "amount": "300.00", "date": "2025-07-05"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["voucher_number"], "PV-000001")

        response = self.client.get(f"/api/purchases/suppliers/{self.supplier_id}/ledger/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["opening_balance"], "100.00")
        self.assertEqual(response.data["total_credit"], "800.00")
        self.assertEqual(response.data["total_settlement"], "300.00")
        self.assertEqual(response.data["closing_balance"], "600.00")
        self.assertEqual(response.data["closing_display"], "600.00 Cr")
        self.assertEqual(response.data["supplier"]["balance"], "600.00")

    def test_stale_supplier_edit_is_409(self):
        response = self.client.patch(
            f"/api/purchases/suppliers/{self.supplier_id}/",
            {"phone": "0802", "expected_version": 9},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

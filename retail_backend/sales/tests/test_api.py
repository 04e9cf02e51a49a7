# sales/tests/test_api.py

from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from products.models import Batch, Product
from sales.models import Bill, Customer

User = get_user_model()


class BillApiTests(TestCase):
    """
    /api/sales/bills/

    GUARANTEES:
    - Create / edit / delete return the bill with its stock adjustments
    - Domain failures are 400, a stale version is 409, a missing bill is 404
    - PATCH on the bill itself is refused; header edits use /details/
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="cashier", password="pass")
        self.client.force_authenticate(self.user)

        self.product = Product.objects.create(name="Dolo 650", units_per_strip=15, gst=Decimal("12.00"))
        self.batch = Batch.objects.create(
            product=self.product,
            batch_number="DL-9",
            expiry_date=date(2030, 3, 31),
            stock=20,
            mrp=Decimal("30.00"),
        )

    def _create(self, loose_qty=5, **extra):
        return self.client.post(
            "/api/sales/bills/",
            {"items": [{"batch_id": str(self.batch.pk), "loose_qty": loose_qty}], **extra},
            format="json",
        )

    def _stock(self):
        self.batch.refresh_from_db()
        return self.batch.stock

    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(None)
        self.assertEqual(self.client.get("/api/sales/bills/").status_code, 401)

    def test_create_bill(self):
        response = self._create()

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["bill"]["bill_number"], "B0001")
        self.assertEqual(response.data["bill"]["grand_total"], "10.00")
        self.assertEqual(len(response.data["bill"]["items"]), 1)
        self.assertEqual(response.data["stock_adjustments"][0]["stock_after"], 15)
        self.assertEqual(self._stock(), 15)

    def test_oversell_is_400_and_writes_nothing(self):
        response = self._create(loose_qty=25)

        self.assertEqual(response.status_code, 400)
        self.assertIn("Insufficient stock", response.data["detail"])
        self.assertFalse(Bill.objects.exists())
        self.assertEqual(self._stock(), 20)

    def test_line_without_quantity_is_400(self):
        response = self._create(loose_qty=0)
        self.assertEqual(response.status_code, 400)

    def test_edit_and_delete(self):
        bill_id = self._create().data["bill"]["id"]

        response = self.client.put(
            f"/api/sales/bills/{bill_id}/",
            {"items": [{"batch_id": str(self.batch.pk), "loose_qty": 8}], "expected_version": 1},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["bill"]["version"], 2)
        self.assertEqual(self._stock(), 12)

        response = self.client.delete(f"/api/sales/bills/{bill_id}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["bill_number"], "B0001")
        self.assertEqual(self._stock(), 20)

    def test_stale_version_is_409(self):
        bill_id = self._create().data["bill"]["id"]

        response = self.client.put(
            f"/api/sales/bills/{bill_id}/",
            {"items": [{"batch_id": str(self.batch.pk), "loose_qty": 8}], "expected_version": 3},
            format="json",
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self._stock(), 15)

    def test_missing_bill_is_404(self):
        response = self.client.delete("/api/sales/bills/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, 404)

    def test_patch_is_refused(self):
        bill_id = self._create().data["bill"]["id"]
        response = self.client.patch(f"/api/sales/bills/{bill_id}/", {"doctor_name": "X"}, format="json")
        self.assertEqual(response.status_code, 405)

    def test_details_edit(self):
        bill_id = self._create().data["bill"]["id"]

        response = self.client.patch(
            f"/api/sales/bills/{bill_id}/details/",
            {"customer_name": "Leela", "doctor_name": "Dr. Menon"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["customer_name"], "Leela")
        self.assertEqual(response.data["doctor_name"], "Dr. Menon")
        self.assertEqual(self._stock(), 15)

    def test_list_filters(self):
        self._create(date="2025-01-10")
        self._create(date="2025-02-10", customer_name="Leela")

        response = self.client.get("/api/sales/bills/", {"date_from": "2025-02-01"})
        self.assertEqual(len(response.data), 1)

        response = self.client.get("/api/sales/bills/", {"q": "leela"})
        self.assertEqual(len(response.data), 1)

        response = self.client.get("/api/sales/bills/", {"date_from": "not-a-date"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 2)


class CustomerApiTests(TestCase):
    """
    /api/sales/customers/ and /api/sales/customer-payments/

    GUARANTEES:
    - balance is read only and shown with its Dr / Cr label
    - the ledger endpoint folds bills and receipts into a statement
    - receipts move the balance
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="accounts", password="pass")
        self.client.force_authenticate(self.user)

    def test_create_customer_ignores_balance(self):
        response = self.client.post(
            "/api/sales/customers/",
            {"name": "Kavya", "opening_balance": "250.00", "balance": "9999.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["balance"], "250.00")
        self.assertEqual(response.data["balance_display"], "250.00 Dr")

    def test_stale_customer_edit_is_409(self):
        customer = Customer.objects.create(name="Kavya")
        response = self.client.patch(
            f"/api/sales/customers/{customer.pk}/",
            {"phone": "123", "expected_version": 4},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_receipt_and_ledger(self):
        customer = Customer.objects.create(
            name="Kavya", opening_balance=Decimal("1000.00"), balance=Decimal("1000.00")
        )

        response = self.client.post(
            "/api/sales/customer-payments/",
            {"customer_id": str(customer.pk), "amount": "400.00", "date": "2025-05-02"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["voucher_number"], "RV-000001")

        customer.refresh_from_db()
        self.assertEqual(customer.balance, Decimal("600.00"))

        response = self.client.get(
            f"/api/sales/customers/{customer.pk}/ledger/",
            {"date_from": "2025-05-01", "date_to": "2025-05-31"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["opening_balance"], "1000.00")
        self.assertEqual(response.data["total_settlement"], "400.00")
        self.assertEqual(response.data["closing_balance"], "600.00")
        self.assertEqual(response.data["closing_display"], "600.00 Dr")
        self.assertEqual(len(response.data["rows"]), 1)

    def test_inverted_ledger_window_is_400(self):
        customer = Customer.objects.create(name="Kavya")
        response = self.client.get(
            f"/api/sales/customers/{customer.pk}/ledger/",
            {"date_from": "2025-05-31", "date_to": "2025-05-01"},
        )
        self.assertEqual(response.status_code, 400)

    def test_future_date_from_without_date_to(self):
        customer = Customer.objects.create(name="Kavya")
        future = timezone.localdate() + timedelta(days=30)
        response = self.client.get(
            f"/api/sales/customers/{customer.pk}/ledger/",
            {"date_from": future.isoformat()},
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["date_from"], future.isoformat())
        self.assertEqual(response.data["date_to"], future.isoformat())
        self.assertEqual(response.data["rows"], [])

    def test_zero_receipt_is_400(self):
        customer = Customer.objects.create(name="Kavya")
        response = self.client.post(
            "/api/sales/customer-payments/",
            {"customer_id": str(customer.pk), "amount": "0"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_summary(self):
        Customer.objects.create(name="Kavya", opening_balance=Decimal("10.00"), balance=Decimal("10.00"))
        response = self.client.get("/api/sales/customers/summary/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["outstanding"], "10.00")


class SalesReportApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(User.objects.create_user(username="owner", password="pass"))

    def test_company_is_required(self):
        response = self.client.get("/api/sales/reports/company-profit/")
        self.assertEqual(response.status_code, 400)

    def test_empty_summary(self):
        response = self.client.get("/api/sales/reports/summary/", {"date_from": "2025-01-01"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["bill_count"], 0)
        self.assertEqual(response.data["grand_total"], "0.00")

# accounting/tests/test_reconciliation.py

from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounting.services.ledger import customer_ledger
from accounting.services.reconciliation import find_balance_drift
from purchases.models import Purchase, Supplier, SupplierPayment
from sales.models import Bill, Customer, CustomerPayment

User = get_user_model()


class BalanceDriftTestBase(TestCase):
    def setUp(self):
        self.customer = Customer.objects.create(
            name="Ramesh", opening_balance=Decimal("100.00"), balance=Decimal("100.00")
        )
        Bill.objects.create(
            bill_number="B0001",
            date=date(2025, 3, 1),
            customer=self.customer,
            customer_name="Ramesh",
            payment_mode=Bill.PaymentMode.CREDIT,
            grand_total=Decimal("400.00"),
        )
        CustomerPayment.objects.create(
            customer=self.customer,
            voucher_number="RV-000001",
            date=date(2025, 3, 2),
            amount=Decimal("150.00"),
        )
        # 100 + 400 - 150
        Customer.objects.filter(pk=self.customer.pk).update(balance=Decimal("350.00"))

        self.supplier = Supplier.objects.create(name="Medline Distributors")
        Purchase.objects.create(
            supplier=self.supplier,
            invoice_number="INV-9",
            invoice_date=date(2025, 3, 1),
            total_amount=Decimal("900.00"),
        )
        SupplierPayment.objects.create(
            supplier=self.supplier,
            voucher_number="PV-000001",
            date=date(2025, 3, 5),
            amount=Decimal("200.00"),
        )
        Supplier.objects.filter(pk=self.supplier.pk).update(balance=Decimal("700.00"))


# =====================================================
# SERVICE
# =====================================================


class BalanceDriftTests(BalanceDriftTestBase):
    """
    Balance drift detection.

    GUARANTEES:
    - expected balance = opening + credits - settlements
    - matching balances report nothing
    - repair rewrites the stored balance and bumps the version
    """

    def test_consistent_balances_report_nothing(self):
        self.assertEqual(find_balance_drift(), [])

    def test_detects_customer_drift_without_writing(self):
        Customer.objects.filter(pk=self.customer.pk).update(balance=Decimal("999.00"))

        drifts = find_balance_drift()

        self.assertEqual(len(drifts), 1)
        drift = drifts[0]
        self.assertEqual(drift.kind, "customer")
        self.assertEqual(drift.stored_balance, Decimal("999.00"))
        self.assertEqual(drift.expected_balance, Decimal("350.00"))
        self.assertEqual(drift.difference, Decimal("649.00"))
        self.assertFalse(drift.repaired)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("999.00"))

    def test_repair_rewrites_supplier_balance(self):
        Supplier.objects.filter(pk=self.supplier.pk).update(balance=Decimal("0.00"))

        drifts = find_balance_drift(repair=True)

        self.assertEqual(len(drifts), 1)
        self.assertTrue(drifts[0].repaired)
        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.balance, Decimal("700.00"))
        self.assertEqual(self.supplier.version, 2)
        self.assertEqual(find_balance_drift(), [])

    def test_name_matched_credit_bill_counts(self):
        Bill.objects.create(
            bill_number="B0002",
            date=date(2025, 3, 3),
            customer_name="ramesh",
            payment_mode=Bill.PaymentMode.CREDIT,
            grand_total=Decimal("50.00"),
        )

        drifts = find_balance_drift()

        self.assertEqual(len(drifts), 1)
        self.assertEqual(drifts[0].expected_balance, Decimal("400.00"))


class SharedNameCreditBillTests(TestCase):
    """
    Unlinked credit bills when two customers share a name.

    GUARANTEES:
    - the bill counts toward the oldest customer holding the name only
    - repair leaves the newer namesake at its own balance
    - the per-customer ledger agrees with the bulk scan
    """

    def setUp(self):
        now = timezone.now()
        self.older = Customer.objects.create(name="Ravi")
        self.newer = Customer.objects.create(name="ravi")
        Customer.objects.filter(pk=self.older.pk).update(created_at=now - timedelta(days=2))
        Customer.objects.filter(pk=self.newer.pk).update(created_at=now - timedelta(days=1))
        Bill.objects.create(
            bill_number="B0100",
            date=date(2025, 4, 1),
            customer_name="RAVI",
            payment_mode=Bill.PaymentMode.CREDIT,
            grand_total=Decimal("500.00"),
        )

    def test_repair_charges_oldest_namesake_only(self):
        drifts = find_balance_drift(repair=True)

        self.assertEqual([d.counterparty_id for d in drifts], [self.older.pk])
        self.older.refresh_from_db()
        self.newer.refresh_from_db()
        self.assertEqual(self.older.balance, Decimal("500.00"))
        self.assertEqual(self.newer.balance, Decimal("0.00"))
        self.assertEqual(find_balance_drift(), [])

    def test_customer_ledger_matches_ownership(self):
        _, older_statement = customer_ledger(customer_id=self.older.pk)
        _, newer_statement = customer_ledger(customer_id=self.newer.pk)

        self.assertEqual(older_statement.closing_balance, Decimal("500.00"))
        self.assertEqual(newer_statement.closing_balance, Decimal("0.00"))
        self.assertEqual(newer_statement.rows, ())


# =====================================================
# API + COMMAND
# =====================================================


class BalanceReconcileApiTests(BalanceDriftTestBase):
    """
    GUARANTEES:
    - GET lists drift and never writes
    - POST repairs and is staff only
    """

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.clerk = User.objects.create_user(username="clerk", password="pass1234")
        self.admin = User.objects.create_user(username="owner", password="pass1234", is_staff=True)
        self.url = "/api/accounting/reconcile/"
        Customer.objects.filter(pk=self.customer.pk).update(balance=Decimal("10.00"))

    def test_requires_authentication(self):
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, 401)

    def test_get_reports_drift(self):
        self.client.force_authenticate(self.clerk)
        res = self.client.get(self.url)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["drift_count"], 1)
        self.assertFalse(res.data["repaired"])
        self.assertEqual(res.data["drifts"][0]["expected_balance"], "350.00")

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("10.00"))

    def test_repair_requires_staff(self):
        self.client.force_authenticate(self.clerk)
        res = self.client.post(self.url)
        self.assertEqual(res.status_code, 403)

    def test_staff_repair(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(self.url)

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["repaired"])
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("350.00"))

    def test_command_reports_and_repairs(self):
        out = StringIO()
        call_command("reconcile_balances", stdout=out)
        self.assertIn("1 balance(s) drifted", out.getvalue())

        with self.assertRaises(SystemExit):
            call_command("reconcile_balances", "--strict", stdout=StringIO())

        out = StringIO()
        call_command("reconcile_balances", "--repair", stdout=out)
        self.assertIn("Repaired 1 balance(s)", out.getvalue())

        out = StringIO()
        call_command("reconcile_balances", stdout=out)
        self.assertIn("All balances match", out.getvalue())

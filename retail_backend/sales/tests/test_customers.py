# sales/tests/test_customers.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from sales.models import CustomerPayment
from sales.services.customers import create_customer, update_customer
from sales.services.exceptions import CustomerError, PaymentError
from sales.services.payments import (
    delete_customer_payment,
    record_customer_payment,
    update_customer_payment,
)
from store.services.concurrency import ConcurrentUpdateError


class CustomerMasterTests(TestCase):
    """
    GUARANTEES:
    - A new customer starts at balance = opening balance
    - Editing the opening balance moves the balance by the difference
    - A stale expected_version is refused
    """

    def setUp(self):
        self.customer = create_customer(data={"name": "Anita", "opening_balance": Decimal("500.00")})

    def test_starts_at_opening(self):
        self.assertEqual(self.customer.balance, Decimal("500.00"))

    def test_opening_change_moves_balance(self):
        record_customer_payment(customer_id=self.customer.pk, amount="200")

        customer = update_customer(
            customer_id=self.customer.pk, data={"opening_balance": Decimal("800.00")}
        )
        self.assertEqual(customer.opening_balance, Decimal("800.00"))
        self.assertEqual(customer.balance, Decimal("600.00"))

    def test_plain_field_edit(self):
        customer = update_customer(customer_id=self.customer.pk, data={"phone": "98450"})
        self.assertEqual(customer.phone, "98450")
        self.assertEqual(customer.balance, Decimal("500.00"))

    def test_stale_version(self):
        with self.assertRaises(ConcurrentUpdateError):
            update_customer(customer_id=self.customer.pk, data={"phone": "1"}, expected_version=5)

    def test_unknown_customer(self):
        with self.assertRaises(CustomerError):
            update_customer(customer_id="00000000-0000-0000-0000-000000000000", data={})


class CustomerReceiptTests(TestCase):
    """
    Receipts (RV-000001, ...).

    GUARANTEES:
    - A receipt lowers the balance, deleting it restores the balance
    - Editing the amount moves the balance by the difference
    - Moving a receipt to another customer moves the amount with it
    - Non-positive amounts are refused
    """

    def setUp(self):
        self.customer = create_customer(data={"name": "Anita", "opening_balance": Decimal("1000.00")})
        self.other = create_customer(data={"name": "Farhan"})

    def _balance(self, customer):
        customer.refresh_from_db()
        return customer.balance

    def test_voucher_numbers(self):
        first = record_customer_payment(customer_id=self.customer.pk, amount="100")
        second = record_customer_payment(customer_id=self.customer.pk, amount="50")

        self.assertEqual(first.voucher_number, "RV-000001")
        self.assertEqual(second.voucher_number, "RV-000002")
        self.assertEqual(self._balance(self.customer), Decimal("850.00"))

    def test_amount_must_be_positive(self):
        with self.assertRaises(PaymentError):
            record_customer_payment(customer_id=self.customer.pk, amount="0")
        with self.assertRaises(PaymentError):
            record_customer_payment(customer_id=self.customer.pk, amount="-5")

    def test_edit_amount(self):
        payment = record_customer_payment(customer_id=self.customer.pk, amount="300")
        update_customer_payment(payment_id=payment.pk, data={"amount": Decimal("100")})

        self.assertEqual(self._balance(self.customer), Decimal("900.00"))

    def test_move_to_other_customer(self):
        payment = record_customer_payment(
            customer_id=self.customer.pk, amount="300", date=date(2025, 3, 1)
        )
        update_customer_payment(payment_id=payment.pk, data={"customer_id": self.other.pk})

        self.assertEqual(self._balance(self.customer), Decimal("1000.00"))
        self.assertEqual(self._balance(self.other), Decimal("-300.00"))

    def test_delete_restores_balance(self):
        payment = record_customer_payment(customer_id=self.customer.pk, amount="300")
        delete_customer_payment(payment_id=payment.pk)

        self.assertEqual(self._balance(self.customer), Decimal("1000.00"))
        self.assertFalse(CustomerPayment.objects.exists())

# purchases/tests/test_purchases.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from products.models import Batch, Product, StockMovement
from purchases.models import Purchase, SupplierPayment
from purchases.services.payment_service import (
    SupplierPaymentError,
    delete_supplier_payment,
    pay_supplier,
    update_supplier_payment,
)
from purchases.services.purchase_service import (
    ConfirmationRequired,
    PurchaseError,
    PurchaseNotFound,
    create_purchase,
    delete_purchase,
    update_purchase,
)
from purchases.services.supplier_service import SupplierError, create_supplier, update_supplier


def _line(**overrides):
    line = {
        "product_name": "Amoxyclav 625",
        "company": "Abbott",
        "gst": Decimal("12.00"),
        "units_per_strip": 10,
        "batch_number": "AMX-01",
        "expiry_date": "2030-08",
        "quantity": 10,
        "mrp": Decimal("220.00"),
        "purchase_price": Decimal("150.00"),
    }
    line.update(overrides)
    return line


class PurchaseServiceTests(TestCase):
    """
    Supplier purchases.

    GUARANTEES:
    - quantity (strips) * units_per_strip units reach the batch
    - total = sum(purchase_price * quantity), added to the supplier balance
    - an existing batch is topped up and its prices refreshed
    - an edit nets old and new lines per batch
    - delete needs confirmation, reverses the balance and leaves stock alone
    - invoice numbers are unique per supplier
    """

    def setUp(self):
        self.supplier = create_supplier(data={"name": "Medplus Distributors"})

    def _balance(self, supplier=None):
        supplier = supplier or self.supplier
        supplier.refresh_from_db()
        return supplier.balance

    def _create(self, invoice="INV-1", **line):
        return create_purchase(
            data={
                "supplier_id": self.supplier.pk,
                "invoice_number": invoice,
                "invoice_date": date(2025, 6, 1),
                "items": [_line(**line)],
            }
        )

    def test_new_product_purchase(self):
        result = self._create()
        purchase = result.purchase

        product = Product.objects.get(name="Amoxyclav 625")
        batch = product.batches.get()
        self.assertEqual(product.company_name, "Abbott")
        self.assertEqual(batch.stock, 100)
        self.assertEqual(batch.expiry_date, date(2030, 8, 31))

        purchase.refresh_from_db()
        self.assertEqual(purchase.total_amount, Decimal("1500.00"))
        self.assertEqual(self._balance(), Decimal("1500.00"))

        item = purchase.items.get()
        self.assertEqual(item.units_per_strip, 10)
        self.assertEqual(item.batch, batch)
        self.assertEqual(result.stock_adjustments[0].quantity_delta, 100)

        movement = StockMovement.objects.get(purchase=purchase)
        self.assertEqual(movement.reason, StockMovement.Reason.PURCHASE)
        self.assertEqual(movement.quantity, 100)

    def test_existing_batch_is_topped_up(self):
        self._create()
        product = Product.objects.get(name="Amoxyclav 625")

        self._create(invoice="INV-2", product_id=product.pk, quantity=5, mrp=Decimal("230.00"))

        batch = product.batches.get()
        self.assertEqual(batch.stock, 150)
        self.assertEqual(batch.mrp, Decimal("230.00"))
        self.assertEqual(self._balance(), Decimal("2250.00"))

    def test_new_batch_number_adds_batch(self):
        self._create()
        product = Product.objects.get(name="Amoxyclav 625")

        self._create(invoice="INV-2", product_id=product.pk, batch_number="AMX-02")

        self.assertEqual(product.batches.count(), 2)
        self.assertEqual(product.total_stock, 200)

    def test_duplicate_invoice_refused(self):
        self._create()
        with self.assertRaises(PurchaseError):
            self._create(invoice="inv-1")

    def test_edit_nets_per_batch(self):
        purchase = self._create().purchase
        product = Product.objects.get(name="Amoxyclav 625")

        update_purchase(
            purchase_id=purchase.pk,
            data={"items": [_line(product_id=product.pk, quantity=4)]},
        )

        batch = product.batches.get()
        self.assertEqual(batch.stock, 40)
        self.assertEqual(self._balance(), Decimal("600.00"))
        self.assertEqual(
            StockMovement.objects.filter(reason=StockMovement.Reason.PURCHASE_EDIT).get().quantity,
            60,
        )

    def test_edit_revert_clamps_at_zero(self):
        purchase = self._create().purchase
        product = Product.objects.get(name="Amoxyclav 625")
        batch = product.batches.get()
        Batch.objects.filter(pk=batch.pk).update(stock=30)

        update_purchase(
            purchase_id=purchase.pk,
            data={"items": [_line(product_id=product.pk, quantity=1)]},
        )

        batch.refresh_from_db()
        self.assertEqual(batch.stock, 0)

    def test_edit_moves_balance_between_suppliers(self):
        other = create_supplier(data={"name": "Apollo Wholesale"})
        purchase = self._create().purchase
        product = Product.objects.get(name="Amoxyclav 625")

        update_purchase(
            purchase_id=purchase.pk,
            data={"supplier_id": other.pk, "items": [_line(product_id=product.pk)]},
        )

        self.assertEqual(self._balance(), Decimal("0.00"))
        self.assertEqual(self._balance(other), Decimal("1500.00"))
        self.assertEqual(product.batches.get().stock, 100)

    def test_delete_requires_confirmation(self):
        purchase = self._create().purchase

        with self.assertRaises(ConfirmationRequired):
            delete_purchase(purchase_id=purchase.pk)

        self.assertTrue(Purchase.objects.filter(pk=purchase.pk).exists())

    def test_delete_keeps_stock(self):
        purchase = self._create().purchase

        delete_purchase(purchase_id=purchase.pk, confirm=True)

        self.assertFalse(Purchase.objects.exists())
        self.assertEqual(Product.objects.get(name="Amoxyclav 625").batches.get().stock, 100)
        self.assertEqual(self._balance(), Decimal("0.00"))

    def test_delete_unknown(self):
        with self.assertRaises(PurchaseNotFound):
            delete_purchase(purchase_id="00000000-0000-0000-0000-000000000000", confirm=True)


class SupplierTests(TestCase):
    """
    GUARANTEES:
    - Supplier names are unique case-insensitively
    - Opening balance edits move the balance by the difference
    - Payment vouchers are numbered PV-000001... and settle the balance
    """

    def setUp(self):
        self.supplier = create_supplier(
            data={"name": "Medplus Distributors", "opening_balance": Decimal("1000.00")}
        )

    def _balance(self, supplier=None):
        supplier = supplier or self.supplier
        supplier.refresh_from_db()
        return supplier.balance

    def test_duplicate_name_refused(self):
        with self.assertRaises(SupplierError):
            create_supplier(data={"name": "medplus distributors"})

    def test_opening_edit(self):
        update_supplier(supplier_id=self.supplier.pk, data={"opening_balance": Decimal("700.00")})
        self.assertEqual(self._balance(), Decimal("700.00"))

    def test_payment_vouchers(self):
        first = pay_supplier(supplier_id=self.supplier.pk, amount="400")
        second = pay_supplier(supplier_id=self.supplier.pk, amount="100", method="UPI")

        self.assertEqual(first.voucher_number, "PV-000001")
        self.assertEqual(second.voucher_number, "PV-000002")
        self.assertEqual(self._balance(), Decimal("500.00"))

    def test_payment_edit_and_delete(self):
        payment = pay_supplier(supplier_id=self.supplier.pk, amount="400")

        update_supplier_payment(payment_id=payment.pk, data={"amount": Decimal("250")})
        self.assertEqual(self._balance(), Decimal("750.00"))

        delete_supplier_payment(payment_id=payment.pk)
        self.assertEqual(self._balance(), Decimal("1000.00"))
        self.assertFalse(SupplierPayment.objects.exists())

    def test_zero_payment_refused(self):
        with self.assertRaises(SupplierPaymentError):
            pay_supplier(supplier_id=self.supplier.pk, amount="0")

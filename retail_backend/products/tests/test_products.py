# products/tests/test_products.py

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from products.models import Batch, Company, GstRate, Product, StockMovement, parse_expiry
from products.services.catalog import (
    add_batch,
    add_gst_rate,
    add_product_with_batch,
    bulk_import_products,
    delete_batch,
    delete_gst_rate,
    delete_product,
    ensure_company,
    update_gst_rate,
)
from products.services.exceptions import (
    DuplicateRecordError,
    GstRateInUseError,
    ProductServiceError,
    ReferencedRecordError,
)
from sales.services.billing import create_bill
from store.models import SystemConfig


def _batch_data(**overrides):
    data = {
        "batch_number": "B-001",
        "expiry_date": "2030-06",
        "stock": 20,
        "mrp": Decimal("30.00"),
        "purchase_price": Decimal("20.00"),
    }
    data.update(overrides)
    return data


class ExpiryParsingTests(TestCase):
    """
    GUARANTEES:
    - "YYYY-MM" resolves to the last day of the month
    - Full dates pass through
    - Garbage is rejected
    """

    def test_month_precision(self):
        self.assertEqual(parse_expiry("2028-02"), date(2028, 2, 29))
        self.assertEqual(parse_expiry("2027-11"), date(2027, 11, 30))

    def test_full_date(self):
        self.assertEqual(parse_expiry("2027-11-15"), date(2027, 11, 15))
        self.assertEqual(parse_expiry(date(2027, 1, 1)), date(2027, 1, 1))

    def test_invalid(self):
        for raw in ("", "2027", "2027-13", "soon"):
            with self.assertRaises(ValidationError):
                parse_expiry(raw)


class CatalogTests(TestCase):
    """
    Product, batch and company maintenance.

    GUARANTEES:
    - A product is created with its first batch and an OPENING movement
    - Companies are reused case-insensitively
    - Batch numbers are unique per product
    - Referenced products and batches cannot be deleted
    """

    def setUp(self):
        self.product = add_product_with_batch(
            product_data={"name": "Azithral 500", "company": "Alembic", "gst": Decimal("12.00")},
            batch_data=_batch_data(),
        )
        self.batch = self.product.batches.get()

    def test_product_created_with_batch(self):
        self.assertEqual(self.product.company_name, "Alembic")
        self.assertEqual(self.batch.stock, 20)
        self.assertEqual(self.batch.opening_stock, 20)
        self.assertEqual(self.batch.expiry_date, date(2030, 6, 30))

        movement = StockMovement.objects.get(batch=self.batch)
        self.assertEqual(movement.reason, StockMovement.Reason.OPENING)
        self.assertEqual(movement.quantity, 20)

    def test_company_reused_case_insensitively(self):
        self.assertEqual(ensure_company("ALEMBIC"), self.product.company)
        self.assertEqual(Company.objects.count(), 1)
        self.assertIsNone(ensure_company("  "))

    def test_duplicate_batch_number_refused(self):
        with self.assertRaises(DuplicateRecordError):
            add_batch(product=self.product, batch_data=_batch_data())

    def test_negative_opening_stock_refused(self):
        with self.assertRaises(ProductServiceError):
            add_batch(product=self.product, batch_data=_batch_data(batch_number="B-002", stock=-1))

    def test_sale_rate_drives_selling_rate(self):
        batch = add_batch(
            product=self.product,
            batch_data=_batch_data(batch_number="B-003", sale_rate=Decimal("28.00")),
        )
        self.assertEqual(batch.selling_rate, Decimal("28.00"))
        self.assertEqual(self.batch.selling_rate, Decimal("30.00"))

    def test_unreferenced_batch_and_product_can_be_deleted(self):
        delete_batch(batch=self.batch)
        self.assertFalse(Batch.objects.filter(pk=self.batch.pk).exists())

        delete_product(product=self.product)
        self.assertFalse(Product.objects.filter(pk=self.product.pk).exists())

    def test_billed_batch_and_product_cannot_be_deleted(self):
        create_bill(data={"items": [{"batch_id": self.batch.pk, "loose_qty": 1}]})

        with self.assertRaises(ReferencedRecordError):
            delete_batch(batch=self.batch)
        with self.assertRaises(ReferencedRecordError):
            delete_product(product=self.product)

        self.assertTrue(Batch.objects.filter(pk=self.batch.pk).exists())

    def test_retail_mode_assigns_barcodes(self):
        config = SystemConfig.load()
        config.software_mode = SystemConfig.SoftwareMode.RETAIL
        config.save()

        first = add_product_with_batch(
            product_data={"name": "Soap"}, batch_data=_batch_data(batch_number="S-1")
        )
        second = add_product_with_batch(
            product_data={"name": "Shampoo"}, batch_data=_batch_data(batch_number="S-2")
        )
        self.assertEqual(first.barcode, "000001")
        self.assertEqual(second.barcode, "000002")

    def test_bulk_import_skips_existing(self):
        result = bulk_import_products(
            rows=[
                {"name": "azithral 500", "company": "alembic"},
                {"name": "Dolo 650", "company": "Micro Labs"},
                {"name": "DOLO 650", "company": "micro labs"},
            ]
        )
        self.assertEqual(result, {"success": 1, "skipped": 2})
        self.assertTrue(Product.objects.filter(name="Dolo 650").exists())


class GstMasterTests(TestCase):
    """
    GUARANTEES:
    - Rates are unique and within 0..100
    - A rate carried by any product cannot be deleted, and nothing changes
    """

    def setUp(self):
        self.rate = add_gst_rate(rate="12")

    def test_duplicate_refused(self):
        with self.assertRaises(DuplicateRecordError):
            add_gst_rate(rate=Decimal("12.00"))

    def test_out_of_range_refused(self):
        with self.assertRaises(ProductServiceError):
            add_gst_rate(rate="101")

    def test_update_to_existing_rate_refused(self):
        other = add_gst_rate(rate="18")
        with self.assertRaises(DuplicateRecordError):
            update_gst_rate(gst_rate=other, rate="12")

    def test_rate_in_use_cannot_be_deleted(self):
        Product.objects.create(name="Cough Syrup", gst=Decimal("12.00"))

        with self.assertRaises(GstRateInUseError):
            delete_gst_rate(gst_rate=self.rate)

        self.assertTrue(GstRate.objects.filter(pk=self.rate.pk).exists())

    def test_unused_rate_can_be_deleted(self):
        delete_gst_rate(gst_rate=self.rate)
        self.assertFalse(GstRate.objects.exists())

# sales/tests/test_billing.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from products.models import Batch, Product, StockMovement
from products.services.exceptions import InsufficientStockError
from sales.models import Bill, BillItem, Customer
from sales.services.billing import (
    compute_bill_totals,
    create_bill,
    delete_bill,
    line_quantity,
    line_total,
    update_bill,
    update_bill_details,
)
from sales.services.exceptions import BillingError, BillNotFound, EmptyBillError
from store.models import SystemConfig
from store.services.concurrency import ConcurrentUpdateError

User = get_user_model()


class BillPricingTests(TestCase):
    """
    Line and bill arithmetic (MRP is GST inclusive).

    GUARANTEES:
    - quantity = strips * units_per_strip + loose
    - line total = quantity * mrp / units_per_strip
    - grand total is rounded to the rupee, round_off holds the difference
    - subtotal + total_gst always equals the unrounded gross
    """

    def test_line_quantity(self):
        self.assertEqual(line_quantity(strip_qty=2, loose_qty=3, units_per_strip=10), 23)
        self.assertEqual(line_quantity(strip_qty=0, loose_qty=4, units_per_strip=None), 4)

    def test_line_total(self):
        self.assertEqual(
            line_total(quantity=23, mrp=Decimal("35.00"), units_per_strip=10), Decimal("80.50")
        )

    def test_totals(self):
        totals = compute_bill_totals(
            [
                {"total": Decimal("112.00"), "gst": Decimal("12")},
                {"total": Decimal("52.75"), "gst": Decimal("5")},
            ]
        )
        self.assertEqual(totals.subtotal, Decimal("150.24"))
        self.assertEqual(totals.total_gst, Decimal("14.51"))
        self.assertEqual(totals.grand_total, Decimal("165.00"))
        self.assertEqual(totals.round_off, Decimal("0.25"))
        self.assertEqual(totals.subtotal + totals.total_gst, Decimal("164.75"))

    def test_round_half_up(self):
        totals = compute_bill_totals([{"total": Decimal("10.50"), "gst": 0}])
        self.assertEqual(totals.grand_total, Decimal("11.00"))
        self.assertEqual(totals.round_off, Decimal("0.50"))


class BillingServiceTests(TestCase):
    """
    Bill create / edit / delete.

    GUARANTEES:
    - Bills are numbered B0001, B0002, ...
    - Stock and bill rows commit together (an oversell writes nothing)
    - Edit then edit-back restores stock exactly
    - Delete puts every unit back
    - Lines without a batch are reported SKIPPED, never silently dropped
    - Credit bills move the customer balance; other modes do not
    """

    def setUp(self):
        self.user = User.objects.create_user(username="cashier", password="pass")
        self.product = Product.objects.create(
            name="Paracetamol 500mg", units_per_strip=10, gst=Decimal("12.00")
        )
        self.batch = Batch.objects.create(
            product=self.product,
            batch_number="PCM-001",
            expiry_date=date(2030, 12, 31),
            stock=20,
            mrp=Decimal("30.00"),
            purchase_price=Decimal("20.00"),
        )
        self.customer = Customer.objects.create(name="Ravi Kumar")

    def _line(self, loose_qty, **extra):
        return {"batch_id": self.batch.pk, "loose_qty": loose_qty, **extra}

    def _stock(self):
        self.batch.refresh_from_db()
        return self.batch.stock

    def test_numbering_starts_at_b0001(self):
        first = create_bill(data={"items": [self._line(1)]}).bill
        second = create_bill(data={"items": [self._line(1)]}).bill

        self.assertEqual(first.bill_number, "B0001")
        self.assertEqual(second.bill_number, "B0002")

    def test_create_snapshots_line_and_takes_stock(self):
        result = create_bill(data={"items": [self._line(5)]}, user=self.user)
        bill = result.bill

        self.assertEqual(self._stock(), 15)
        item = bill.items.get()
        self.assertEqual(item.product_name, "Paracetamol 500mg")
        self.assertEqual(item.batch_number, "PCM-001")
        self.assertEqual(item.quantity, 5)
        self.assertEqual(item.mrp, Decimal("30.00"))
        self.assertEqual(item.total, Decimal("15.00"))
        self.assertEqual(bill.grand_total, Decimal("15.00"))
        self.assertEqual(bill.customer_name, "Walk-in Customer")
        self.assertEqual(bill.created_by, self.user)

        movement = StockMovement.objects.get(bill=bill)
        self.assertEqual(movement.reason, StockMovement.Reason.SALE)
        self.assertEqual(movement.stock_after, 15)
        self.assertEqual(result.adjustments_as_dicts()[0]["status"], "APPLIED")

    def test_oversell_rolls_back(self):
        with self.assertRaises(InsufficientStockError):
            create_bill(data={"items": [self._line(21)]})

        self.assertEqual(self._stock(), 20)
        self.assertFalse(Bill.objects.exists())
        self.assertFalse(BillItem.objects.exists())

    def test_empty_bill_refused(self):
        with self.assertRaises(EmptyBillError):
            create_bill(data={"items": []})

    def test_line_validation(self):
        with self.assertRaises(BillingError):
            create_bill(data={"items": [{"product_name": "Misc", "loose_qty": 1}]})
        with self.assertRaises(BillingError):
            create_bill(data={"items": [self._line(0)]})
        with self.assertRaises(BillingError):
            create_bill(data={"items": [self._line(1)], "payment_mode": "Cheque"})

    def test_locked_mrp_uses_batch_rate(self):
        config = SystemConfig.load()
        config.mrp_editable = False
        config.save()

        bill = create_bill(data={"items": [self._line(10, mrp=Decimal("99.00"))]}).bill
        self.assertEqual(bill.items.get().mrp, Decimal("30.00"))

    def test_editable_mrp_is_kept(self):
        bill = create_bill(data={"items": [self._line(10, mrp=Decimal("25.00"))]}).bill
        self.assertEqual(bill.items.get().total, Decimal("25.00"))

    def test_unbatched_line_is_skipped(self):
        result = create_bill(
            data={"items": [{"product_name": "Cotton roll", "loose_qty": 2, "mrp": Decimal("40.00")}]}
        )

        self.assertEqual(len(result.skipped_adjustments), 1)
        self.assertEqual(result.skipped_adjustments[0].quantity_delta, -2)
        self.assertEqual(result.bill.grand_total, Decimal("80.00"))
        self.assertEqual(self._stock(), 20)

    def test_edit_and_edit_back_restores_stock(self):
        bill = create_bill(data={"items": [self._line(5)]}).bill
        self.assertEqual(self._stock(), 15)

        update_bill(bill_id=bill.pk, data={"items": [self._line(8)]})
        self.assertEqual(self._stock(), 12)

        update_bill(bill_id=bill.pk, data={"items": [self._line(5)]})
        self.assertEqual(self._stock(), 15)

        reasons = list(
            StockMovement.objects.filter(bill=bill).values_list("reason", flat=True)
        )
        self.assertEqual(reasons.count(StockMovement.Reason.SALE_EDIT), 2)

    def test_unchanged_edit_writes_no_movement(self):
        bill = create_bill(data={"items": [self._line(5)]}).bill
        result = update_bill(bill_id=bill.pk, data={"items": [self._line(5)]})

        self.assertEqual(result.stock_adjustments, ())
        self.assertEqual(StockMovement.objects.filter(bill=bill).count(), 1)

    def test_edit_keeps_missing_header_fields(self):
        bill = create_bill(
            data={"items": [self._line(1)], "doctor_name": "Dr. Rao", "date": date(2025, 1, 5)}
        ).bill
        bill = update_bill(bill_id=bill.pk, data={"items": [self._line(2)]}).bill

        self.assertEqual(bill.doctor_name, "Dr. Rao")
        self.assertEqual(bill.date, date(2025, 1, 5))
        self.assertEqual(bill.version, 2)

    def test_edit_with_stale_version_is_refused(self):
        bill = create_bill(data={"items": [self._line(5)]}).bill

        with self.assertRaises(ConcurrentUpdateError):
            update_bill(bill_id=bill.pk, data={"items": [self._line(8)]}, expected_version=7)

        self.assertEqual(self._stock(), 15)

    def test_delete_restores_stock(self):
        bill = create_bill(data={"items": [self._line(5)]}).bill
        result = delete_bill(bill_id=bill.pk)

        self.assertEqual(self._stock(), 20)
        self.assertEqual(result.stock_adjustments[0].quantity_delta, 5)
        self.assertFalse(Bill.objects.filter(pk=bill.pk).exists())
        self.assertTrue(
            StockMovement.objects.filter(reason=StockMovement.Reason.SALE_REVERSAL).exists()
        )

    def test_delete_unknown_bill(self):
        with self.assertRaises(BillNotFound):
            delete_bill(bill_id="00000000-0000-0000-0000-000000000000")

    # =====================================================
    # CUSTOMER BALANCE
    # =====================================================

    def _balance(self, customer=None):
        customer = customer or self.customer
        customer.refresh_from_db()
        return customer.balance

    def test_cash_bill_leaves_balance(self):
        create_bill(data={"items": [self._line(10)], "customer_id": self.customer.pk})
        self.assertEqual(self._balance(), Decimal("0.00"))

    def test_credit_bill_charges_customer(self):
        bill = create_bill(
            data={"items": [self._line(10)], "customer_id": self.customer.pk, "payment_mode": "Credit"}
        ).bill

        self.assertEqual(self._balance(), Decimal("30.00"))
        self.assertEqual(bill.customer_name, "Ravi Kumar")

    def test_credit_bill_by_name_links_customer(self):
        bill = create_bill(
            data={"items": [self._line(10)], "customer_name": "ravi kumar", "payment_mode": "Credit"}
        ).bill

        self.assertEqual(bill.customer, self.customer)
        self.assertEqual(self._balance(), Decimal("30.00"))

    def test_credit_bill_for_unknown_name_creates_customer(self):
        create_bill(
            data={"items": [self._line(10)], "customer_name": "Meena", "payment_mode": "Credit"}
        )
        self.assertEqual(Customer.objects.get(name="Meena").balance, Decimal("30.00"))

    def test_credit_bill_delete_reverses_balance(self):
        bill = create_bill(
            data={"items": [self._line(10)], "customer_id": self.customer.pk, "payment_mode": "Credit"}
        ).bill
        delete_bill(bill_id=bill.pk)

        self.assertEqual(self._balance(), Decimal("0.00"))

    def test_credit_edit_moves_difference(self):
        bill = create_bill(
            data={"items": [self._line(10)], "customer_id": self.customer.pk, "payment_mode": "Credit"}
        ).bill
        update_bill(bill_id=bill.pk, data={"items": [self._line(20)]})

        self.assertEqual(self._balance(), Decimal("60.00"))

    def test_switch_from_credit_to_cash(self):
        bill = create_bill(
            data={"items": [self._line(10)], "customer_id": self.customer.pk, "payment_mode": "Credit"}
        ).bill
        update_bill(bill_id=bill.pk, data={"items": [self._line(10)], "payment_mode": "Cash"})

        self.assertEqual(self._balance(), Decimal("0.00"))

    def test_credit_bill_moved_to_other_customer(self):
        other = Customer.objects.create(name="Suresh")
        bill = create_bill(
            data={"items": [self._line(10)], "customer_id": self.customer.pk, "payment_mode": "Credit"}
        ).bill
        update_bill(
            bill_id=bill.pk,
            data={"items": [self._line(10)], "customer_id": other.pk, "customer_name": ""},
        )

        self.assertEqual(self._balance(), Decimal("0.00"))
        self.assertEqual(self._balance(other), Decimal("30.00"))

    def test_details_edit_touches_nothing_else(self):
        bill = create_bill(
            data={"items": [self._line(10)], "customer_id": self.customer.pk, "payment_mode": "Credit"}
        ).bill
        movements = StockMovement.objects.count()

        bill = update_bill_details(bill_id=bill.pk, doctor_name="Dr. Iyer", expected_version=1)

        self.assertEqual(bill.doctor_name, "Dr. Iyer")
        self.assertEqual(bill.version, 2)
        self.assertEqual(self._balance(), Decimal("30.00"))
        self.assertEqual(self._stock(), 10)
        self.assertEqual(StockMovement.objects.count(), movements)

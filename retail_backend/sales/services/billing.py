# sales/services/billing.py

"""
BILLING SERVICE

SINGLE SOURCE OF TRUTH for:
- Bill numbering (B0001, B0002, ...)
- Line pricing and bill totals (MRP is GST inclusive)
- Stock movement caused by a bill (create / edit / delete)
- Customer balance movement caused by a Credit bill

GUARANTEES:
- Every action is one transaction: bill rows, stock and balances commit together
- A sale never drives a batch below zero (InsufficientStockError, nothing written)
- An edit nets old and new lines into one change per batch
- Lines that cannot be tied to a batch come back as SKIPPED adjustments
- Editing only customer_name / doctor_name touches neither stock nor balances
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounting.services.balances import (
    CreditEffect,
    credit_sale_created,
    credit_sale_deleted,
    credit_sale_edited,
)
from products.models import Batch, Product, StockMovement
from products.services.stock import (
    StockAdjustmentResult,
    apply_stock_deltas,
    bill_stock_deltas,
    skipped,
)
from sales.models import Bill, BillItem, Customer, Salesman
from sales.services.exceptions import BillingError, BillNotFound, EmptyBillError
from store.models import SystemConfig
from store.services.concurrency import cas_update, check_expected_version
from store.services.sequences import create_with_number

logger = logging.getLogger("billing")

TWOPLACES = Decimal("0.01")
RUPEE = Decimal("1")
ZERO = Decimal("0.00")

BILL_PREFIX = "B"
BILL_NUMBER_WIDTH = 4


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# -------------------------------------------------
# Pricing
# -------------------------------------------------


def line_quantity(*, strip_qty, loose_qty, units_per_strip) -> int:
    """Base units sold: strips * units per strip + loose units."""
    return int(strip_qty or 0) * max(int(units_per_strip or 1), 1) + int(loose_qty or 0)


def line_total(*, quantity, mrp, units_per_strip) -> Decimal:
    unit_price = Decimal(str(mrp)) / Decimal(max(int(units_per_strip or 1), 1))
    return _money(unit_price * int(quantity))


def base_price(total, gst) -> Decimal:
    """Taxable value inside a GST inclusive amount."""
    return Decimal(str(total)) / (Decimal("1") + Decimal(str(gst or 0)) / Decimal("100"))


@dataclass(frozen=True)
class BillTotals:
    subtotal: Decimal
    total_gst: Decimal
    round_off: Decimal
    grand_total: Decimal

    def as_fields(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "total_gst": self.total_gst,
            "round_off": self.round_off,
            "grand_total": self.grand_total,
        }


def compute_bill_totals(lines) -> BillTotals:
    """
    lines: iterables of dicts with "total" and "gst".

    subtotal    = sum(total / (1 + gst/100))
    total_gst   = sum(total) - subtotal
    grand_total = sum(total) rounded to the rupee (half up)
    round_off   = grand_total - sum(total)
    """
    gross = ZERO
    base = Decimal("0")
    for line in lines:
        total = _money(line["total"])
        gross += total
        base += base_price(total, line.get("gst"))

    subtotal = _money(base)
    total_gst = gross - subtotal
    grand_total = gross.quantize(RUPEE, rounding=ROUND_HALF_UP).quantize(TWOPLACES)
    return BillTotals(
        subtotal=subtotal,
        total_gst=total_gst,
        round_off=grand_total - gross,
        grand_total=grand_total,
    )


# -------------------------------------------------
# Input resolution
# -------------------------------------------------


def _resolve_line(line: dict, *, mrp_editable: bool) -> dict:
    """Turn one request line into BillItem field values with snapshots."""
    batch = None
    product = None

    batch_id = line.get("batch_id")
    product_id = line.get("product_id")

    if batch_id:
        batch = (
            Batch.objects.select_related("product", "product__company")
            .filter(pk=batch_id)
            .first()
        )
        if batch is None:
            raise BillingError(f"Batch not found: {batch_id}")
        product = batch.product
        if product_id and str(product_id) != str(product.pk):
            raise BillingError(f"Batch {batch.batch_number} does not belong to product {product_id}")
    elif product_id:
        product = Product.objects.select_related("company").filter(pk=product_id).first()
        if product is None:
            raise BillingError(f"Product not found: {product_id}")

    name = product.name if product else (line.get("product_name") or "").strip()
    if not name:
        raise BillingError("product_name is required for a line without a product")

    units_per_strip = max(
        int(product.units_per_strip if product else (line.get("units_per_strip") or 1)), 1
    )
    strip_qty = int(line.get("strip_qty") or 0)
    loose_qty = int(line.get("loose_qty") or 0)
    if strip_qty < 0 or loose_qty < 0:
        raise BillingError(f"Quantities cannot be negative for {name}")

    quantity = line_quantity(
        strip_qty=strip_qty, loose_qty=loose_qty, units_per_strip=units_per_strip
    )
    if quantity <= 0:
        raise BillingError(f"Quantity must be greater than zero for {name}")

    mrp = line.get("mrp")
    if batch is not None and (mrp is None or not mrp_editable):
        mrp = batch.selling_rate
    if mrp is None:
        raise BillingError(f"mrp is required for {name}")
    mrp = _money(mrp)

    gst = line.get("gst")
    if gst is None:
        gst = product.gst if product else ZERO
    gst = _money(gst)

    total = line.get("total")
    if total is None:
        total = line_total(quantity=quantity, mrp=mrp, units_per_strip=units_per_strip)

    return {
        "product": product,
        "batch": batch,
        "product_name": name,
        "company_name": product.company_name if product else (line.get("company_name") or ""),
        "batch_number": batch.batch_number if batch else (line.get("batch_number") or ""),
        "expiry_date": batch.expiry_date if batch else None,
        "hsn_code": product.hsn_code if product else (line.get("hsn_code") or ""),
        "units_per_strip": units_per_strip,
        "strip_qty": strip_qty,
        "loose_qty": loose_qty,
        "quantity": quantity,
        "mrp": mrp,
        "gst": gst,
        "total": _money(total),
    }


def _resolve_lines(items) -> list[dict]:
    if not items:
        raise EmptyBillError("A bill needs at least one item")
    mrp_editable = SystemConfig.load().mrp_editable
    return [_resolve_line(dict(line), mrp_editable=mrp_editable) for line in items]


def _header(data: dict, *, current: Bill | None = None) -> dict:
    """Header fields; on an edit, keys absent from `data` keep the bill's values."""

    def pick(key, default):
        return data[key] if key in data else default

    customer_id = pick("customer_id", current.customer_id if current else None)
    customer = None
    if customer_id:
        customer = Customer.objects.filter(pk=customer_id).first()
        if customer is None:
            raise BillingError(f"Customer not found: {customer_id}")

    salesman_id = pick("salesman_id", current.salesman_id if current else None)
    salesman = None
    if salesman_id:
        salesman = Salesman.objects.filter(pk=salesman_id).first()
        if salesman is None:
            raise BillingError(f"Salesman not found: {salesman_id}")

    payment_mode = pick("payment_mode", current.payment_mode if current else None) or Bill.PaymentMode.CASH
    if payment_mode not in Bill.PaymentMode.values:
        raise BillingError(f"Unknown payment mode: {payment_mode}")

    customer_name = (pick("customer_name", current.customer_name if current else "") or "").strip()
    if not customer_name:
        customer_name = customer.name if customer else settings.DEFAULT_WALK_IN_NAME

    return {
        "date": pick("date", current.date if current else None) or timezone.localdate(),
        "customer": customer,
        "customer_name": customer_name,
        "doctor_name": (pick("doctor_name", current.doctor_name if current else "") or "").strip(),
        "salesman": salesman,
        "payment_mode": payment_mode,
    }


def _lock_bill(bill_id) -> Bill:
    bill = Bill.objects.select_for_update().filter(pk=bill_id).first()
    if bill is None:
        raise BillNotFound(f"Bill not found: {bill_id}")
    return bill


def _unbatched(lines, *, sign: int) -> list[StockAdjustmentResult]:
    """SKIPPED results for lines that carry no batch reference."""
    return [
        skipped(None, sign * int(line["quantity"]), f"line '{line['product_name']}' has no batch")
        for line in lines
        if line["batch_id"] is None
    ]


def _stock_lines(lines) -> list[dict]:
    return [
        {
            "batch_id": line["batch"].pk if line["batch"] is not None else None,
            "quantity": line["quantity"],
            "product_name": line["product_name"],
        }
        for line in lines
    ]


def _item_lines(bill: Bill) -> list[dict]:
    return [
        {"batch_id": item.batch_id, "quantity": item.quantity, "product_name": item.product_name}
        for item in bill.items.all()
    ]


def _pairs(lines):
    return [(line["batch_id"], line["quantity"]) for line in lines]


def _link_customer(bill: Bill, customer) -> None:
    if customer is not None and bill.customer_id != customer.pk:
        Bill.objects.filter(pk=bill.pk).update(customer=customer)
        bill.customer = customer


@dataclass(frozen=True)
class BillResult:
    bill: Bill
    stock_adjustments: tuple = ()

    @property
    def skipped_adjustments(self) -> list:
        return [r for r in self.stock_adjustments if not r.applied]

    def adjustments_as_dicts(self) -> list[dict]:
        return [r.as_dict() for r in self.stock_adjustments]


# -------------------------------------------------
# Commands
# -------------------------------------------------


@transaction.atomic
def create_bill(*, data: dict, user=None) -> BillResult:
    """
    data: header fields (date, customer_id, customer_name, doctor_name,
    salesman_id, payment_mode) and `items`.
    """
    lines = _resolve_lines(data.get("items"))
    header = _header(data)
    totals = compute_bill_totals(lines)

    bill = create_with_number(
        Bill,
        field="bill_number",
        prefix=BILL_PREFIX,
        width=BILL_NUMBER_WIDTH,
        created_by=user if getattr(user, "is_authenticated", False) else None,
        **header,
        **totals.as_fields(),
    )
    for line in lines:
        BillItem.objects.create(bill=bill, **line)

    stock_lines = _stock_lines(lines)
    results = apply_stock_deltas(
        bill_stock_deltas([], _pairs(stock_lines)),
        reason=StockMovement.Reason.SALE,
        user=user,
        bill=bill,
    )
    results += _unbatched(stock_lines, sign=-1)

    _link_customer(bill, credit_sale_created(bill))

    logger.info(
        "Bill created",
        extra={
            "bill_id": str(bill.pk),
            "bill_number": bill.bill_number,
            "grand_total": str(bill.grand_total),
            "payment_mode": bill.payment_mode,
            "lines": len(lines),
            "skipped": sum(1 for r in results if not r.applied),
        },
    )
    return BillResult(bill=bill, stock_adjustments=tuple(results))


@transaction.atomic
def update_bill(*, bill_id, data: dict, expected_version=None, user=None) -> BillResult:
    """
    Replace a bill's lines and header.

    Stock: per batch, original qty goes back and new qty comes off, netted.
    Balance: new credit effect minus original credit effect.
    """
    bill = _lock_bill(bill_id)
    check_expected_version(bill, expected_version)

    before = CreditEffect.of_bill(bill)
    original = _item_lines(bill)

    lines = _resolve_lines(data.get("items"))
    header = _header(data, current=bill)
    totals = compute_bill_totals(lines)
    new = _stock_lines(lines)

    results = apply_stock_deltas(
        bill_stock_deltas(_pairs(original), _pairs(new)),
        reason=StockMovement.Reason.SALE_EDIT,
        user=user,
        bill=bill,
    )
    results += _unbatched(original, sign=1)
    results += _unbatched(new, sign=-1)

    bill.items.all().delete()
    for line in lines:
        BillItem.objects.create(bill=bill, **line)

    customer = header.pop("customer")
    salesman = header.pop("salesman")
    cas_update(
        Bill,
        pk=bill.pk,
        expected_version=bill.version,
        customer=customer,
        salesman=salesman,
        updated_at=timezone.now(),
        **header,
        **totals.as_fields(),
    )
    bill.refresh_from_db()

    after = CreditEffect.of_bill(bill)
    _link_customer(bill, credit_sale_edited(before, after, bill_number=bill.bill_number))

    logger.info(
        "Bill updated",
        extra={
            "bill_id": str(bill.pk),
            "bill_number": bill.bill_number,
            "old_total": str(before.amount),
            "grand_total": str(bill.grand_total),
            "payment_mode": bill.payment_mode,
            "skipped": sum(1 for r in results if not r.applied),
        },
    )
    return BillResult(bill=bill, stock_adjustments=tuple(results))


@transaction.atomic
def update_bill_details(
    *, bill_id, customer_name=None, doctor_name=None, expected_version=None
) -> Bill:
    """Header-only edit: stock and balances stay as they are."""
    bill = _lock_bill(bill_id)
    check_expected_version(bill, expected_version)

    changes = {}
    if customer_name is not None:
        changes["customer_name"] = customer_name.strip() or settings.DEFAULT_WALK_IN_NAME
    if doctor_name is not None:
        changes["doctor_name"] = doctor_name.strip()
    if not changes:
        return bill

    cas_update(
        Bill, pk=bill.pk, expected_version=bill.version, updated_at=timezone.now(), **changes
    )
    bill.refresh_from_db()
    logger.info(
        "Bill details updated",
        extra={"bill_id": str(bill.pk), "bill_number": bill.bill_number, "fields": sorted(changes)},
    )
    return bill


@transaction.atomic
def delete_bill(*, bill_id, user=None) -> BillResult:
    """Put every line back on its batch, reverse the credit, remove the bill."""
    bill = _lock_bill(bill_id)
    effect = CreditEffect.of_bill(bill)
    original = _item_lines(bill)

    results = apply_stock_deltas(
        bill_stock_deltas(_pairs(original), []),
        reason=StockMovement.Reason.SALE_REVERSAL,
        user=user,
        bill=bill,
    )
    results += _unbatched(original, sign=1)

    credit_sale_deleted(effect, bill_number=bill.bill_number)

    bill_number = bill.bill_number
    bill.delete()

    logger.info(
        "Bill deleted",
        extra={
            "bill_number": bill_number,
            "reversed_credit": str(effect.amount),
            "skipped": sum(1 for r in results if not r.applied),
        },
    )
    return BillResult(bill=bill, stock_adjustments=tuple(results))

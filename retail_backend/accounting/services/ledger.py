# accounting/services/ledger.py

"""
LEDGER RECONCILIATION

A ledger is a fold over two kinds of entries for one counterparty:

  credit      increases what is owed   (credit bill / purchase)
  settlement  decreases what is owed   (receipt / payment voucher)

reconcile() is pure: given the stored opening balance and the entries it
returns the statement for an optional inclusive date window.

- entries are ordered by (date, posted_at, kind, reference) so the running
  balance is deterministic
- entries dated before date_from are folded into the opening balance
- running balance of row i = opening + credits[..i] - settlements[..i]
- closing = opening + total_credit - total_settlement

Sign conventions (no inversion anywhere):
- customer: positive = receivable, displayed "Dr"
- supplier: positive = payable,    displayed "Cr"
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timezone as dt_timezone
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Q

from accounting.services.balances import customer_named
from accounting.services.exceptions import CounterpartyNotFound, LedgerWindowError
from purchases.models import Purchase, Supplier, SupplierPayment
from sales.models import Bill, Customer, CustomerPayment

logger = logging.getLogger("ledger")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

CREDIT = "credit"
SETTLEMENT = "settlement"
_KIND_ORDER = {CREDIT: 0, SETTLEMENT: 1}

CUSTOMER = "customer"
SUPPLIER = "supplier"

_EARLIEST = datetime.min.replace(tzinfo=dt_timezone.utc)


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class LedgerEntry:
    date: date
    kind: str
    amount: Decimal
    reference: str = ""
    description: str = ""
    posted_at: datetime | None = None
    source_id: str | None = None

    def sort_key(self):
        return (
            _as_date(self.date),
            self.posted_at or _EARLIEST,
            _KIND_ORDER[self.kind],
            self.reference or "",
        )


@dataclass(frozen=True)
class LedgerRow:
    date: date
    kind: str
    reference: str
    description: str
    credit: Decimal
    settlement: Decimal
    balance: Decimal
    source_id: str | None = None

    def as_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "kind": self.kind,
            "reference": self.reference,
            "description": self.description,
            "credit": str(self.credit),
            "settlement": str(self.settlement),
            "balance": str(self.balance),
            "source_id": self.source_id,
        }


@dataclass(frozen=True)
class LedgerStatement:
    opening_balance: Decimal
    rows: tuple = field(default_factory=tuple)
    total_credit: Decimal = ZERO
    total_settlement: Decimal = ZERO
    closing_balance: Decimal = ZERO
    date_from: date | None = None
    date_to: date | None = None

    def as_dict(self, *, kind: str | None = None) -> dict:
        data = {
            "date_from": self.date_from.isoformat() if self.date_from else None,
            "date_to": self.date_to.isoformat() if self.date_to else None,
            "opening_balance": str(self.opening_balance),
            "total_credit": str(self.total_credit),
            "total_settlement": str(self.total_settlement),
            "closing_balance": str(self.closing_balance),
            "rows": [row.as_dict() for row in self.rows],
        }
        if kind:
            data["opening_display"] = format_balance(self.opening_balance, kind=kind)
            data["closing_display"] = format_balance(self.closing_balance, kind=kind)
        return data


def reconcile(
    *,
    opening_balance,
    credits,
    settlements,
    date_from: date | None = None,
    date_to: date | None = None,
) -> LedgerStatement:
    """Fold credit and settlement entries into a statement for [date_from, date_to]."""
    if date_from and date_to and date_from > date_to:
        raise LedgerWindowError("date_from must not be after date_to")

    entries = sorted([*credits, *settlements], key=LedgerEntry.sort_key)

    opening = _money(opening_balance)
    window = []
    for entry in entries:
        entry_date = _as_date(entry.date)
        amount = _money(entry.amount)
        if date_from and entry_date < date_from:
            opening += amount if entry.kind == CREDIT else -amount
            continue
        if date_to and entry_date > date_to:
            continue
        window.append(entry)

    running = opening
    total_credit = ZERO
    total_settlement = ZERO
    rows = []
    for entry in window:
        amount = _money(entry.amount)
        if entry.kind == CREDIT:
            total_credit += amount
            running += amount
            credit, settlement = amount, ZERO
        else:
            total_settlement += amount
            running -= amount
            credit, settlement = ZERO, amount
        rows.append(
            LedgerRow(
                date=_as_date(entry.date),
                kind=entry.kind,
                reference=entry.reference,
                description=entry.description,
                credit=credit,
                settlement=settlement,
                balance=running,
                source_id=entry.source_id,
            )
        )

    return LedgerStatement(
        opening_balance=opening,
        rows=tuple(rows),
        total_credit=total_credit,
        total_settlement=total_settlement,
        closing_balance=opening + total_credit - total_settlement,
        date_from=date_from,
        date_to=date_to,
    )


def format_balance(amount, *, kind: str) -> str:
    """
    1200 for a customer -> "1200.00 Dr"; -50 -> "50.00 Cr".
    Suppliers use the opposite labels (positive is payable, "Cr").
    """
    amount = _money(amount)
    positive, negative = ("Dr", "Cr") if kind == CUSTOMER else ("Cr", "Dr")
    suffix = positive if amount >= ZERO else negative
    return f"{abs(amount):.2f} {suffix}"


# -------------------------------------------------
# Entry loaders
# -------------------------------------------------


def _bill_entry(bill: Bill) -> LedgerEntry:
    return LedgerEntry(
        date=bill.date,
        kind=CREDIT,
        amount=bill.grand_total,
        reference=bill.bill_number,
        description="Sale (Credit)",
        posted_at=bill.created_at,
        source_id=str(bill.pk),
    )


def _receipt_entry(payment: CustomerPayment) -> LedgerEntry:
    return LedgerEntry(
        date=payment.date,
        kind=SETTLEMENT,
        amount=payment.amount,
        reference=payment.voucher_number,
        description=f"Receipt ({payment.method})",
        posted_at=payment.created_at,
        source_id=str(payment.pk),
    )


def _purchase_entry(purchase: Purchase) -> LedgerEntry:
    return LedgerEntry(
        date=purchase.invoice_date,
        kind=CREDIT,
        amount=purchase.total_amount,
        reference=purchase.invoice_number,
        description="Purchase",
        posted_at=purchase.created_at,
        source_id=str(purchase.pk),
    )


def _voucher_entry(payment: SupplierPayment) -> LedgerEntry:
    return LedgerEntry(
        date=payment.date,
        kind=SETTLEMENT,
        amount=payment.amount,
        reference=payment.voucher_number,
        description=f"Payment ({payment.method})",
        posted_at=payment.created_at,
        source_id=str(payment.pk),
    )


def customer_credit_bills(customer: Customer):
    """
    Credit-mode bills for this customer: linked by id, or (for bills that
    carry no customer id) by case-insensitive exact customer name when this
    customer is the oldest one holding that name.
    """
    linked = Q(customer=customer)
    owner = customer_named(customer.name)
    if owner is not None and owner.pk == customer.pk:
        linked |= Q(customer__isnull=True, customer_name__iexact=customer.name.strip())
    return Bill.objects.filter(payment_mode=Bill.PaymentMode.CREDIT).filter(linked)


def customer_entries(customer: Customer) -> tuple[list, list]:
    credits = [_bill_entry(b) for b in customer_credit_bills(customer)]
    settlements = [_receipt_entry(p) for p in customer.payments.all()]
    return credits, settlements


def supplier_entries(supplier: Supplier) -> tuple[list, list]:
    credits = [_purchase_entry(p) for p in supplier.purchases.all()]
    settlements = [_voucher_entry(p) for p in supplier.payments.all()]
    return credits, settlements


def customer_entry_map(customers) -> dict:
    """Entries for many customers with two queries: pk -> (credits, settlements)."""
    customers = list(customers)
    by_id = {c.pk: c for c in customers}

    # an unlinked bill belongs to the oldest customer holding its name
    owner_by_name = {}
    for pk, name in Customer.objects.order_by("created_at", "pk").values_list("pk", "name"):
        owner_by_name.setdefault(name.strip().lower(), pk)

    credits = defaultdict(list)
    settlements = defaultdict(list)

    for bill in Bill.objects.filter(payment_mode=Bill.PaymentMode.CREDIT):
        if bill.customer_id is not None:
            if bill.customer_id in by_id:
                credits[bill.customer_id].append(_bill_entry(bill))
            continue
        owner = owner_by_name.get((bill.customer_name or "").strip().lower())
        if owner in by_id:
            credits[owner].append(_bill_entry(bill))

    for payment in CustomerPayment.objects.filter(customer_id__in=list(by_id)):
        settlements[payment.customer_id].append(_receipt_entry(payment))

    return {pk: (credits[pk], settlements[pk]) for pk in by_id}


def supplier_entry_map(suppliers) -> dict:
    suppliers = list(suppliers)
    ids = [s.pk for s in suppliers]

    credits = defaultdict(list)
    settlements = defaultdict(list)
    for purchase in Purchase.objects.filter(supplier_id__in=ids):
        credits[purchase.supplier_id].append(_purchase_entry(purchase))
    for payment in SupplierPayment.objects.filter(supplier_id__in=ids):
        settlements[payment.supplier_id].append(_voucher_entry(payment))

    return {pk: (credits[pk], settlements[pk]) for pk in ids}


# -------------------------------------------------
# Statements
# -------------------------------------------------


def customer_ledger(*, customer_id, date_from=None, date_to=None) -> tuple[Customer, LedgerStatement]:
    customer = Customer.objects.filter(pk=customer_id).first()
    if customer is None:
        raise CounterpartyNotFound(f"Customer not found: {customer_id}")

    credits, settlements = customer_entries(customer)
    statement = reconcile(
        opening_balance=customer.opening_balance,
        credits=credits,
        settlements=settlements,
        date_from=date_from,
        date_to=date_to,
    )
    logger.info(
        "Customer ledger built",
        extra={"customer_id": str(customer.pk), "rows": len(statement.rows)},
    )
    return customer, statement


def supplier_ledger(*, supplier_id, date_from=None, date_to=None) -> tuple[Supplier, LedgerStatement]:
    supplier = Supplier.objects.filter(pk=supplier_id).first()
    if supplier is None:
        raise CounterpartyNotFound(f"Supplier not found: {supplier_id}")

    credits, settlements = supplier_entries(supplier)
    statement = reconcile(
        opening_balance=supplier.opening_balance,
        credits=credits,
        settlements=settlements,
        date_from=date_from,
        date_to=date_to,
    )
    logger.info(
        "Supplier ledger built",
        extra={"supplier_id": str(supplier.pk), "rows": len(statement.rows)},
    )
    return supplier, statement


def counterparty_summary(*, kind: str, date_from=None, date_to=None) -> list[dict]:
    """
    One row per active customer or supplier, sorted by name: opening for
    the period, credits and settlements in the period, outstanding.
    """
    if kind == CUSTOMER:
        parties = list(Customer.objects.filter(is_active=True).order_by("name"))
        entry_map = customer_entry_map(parties)
    elif kind == SUPPLIER:
        parties = list(Supplier.objects.filter(is_active=True).order_by("name"))
        entry_map = supplier_entry_map(parties)
    else:
        raise ValueError(f"Unknown counterparty kind: {kind}")

    rows = []
    for party in parties:
        credits, settlements = entry_map[party.pk]
        statement = reconcile(
            opening_balance=party.opening_balance,
            credits=credits,
            settlements=settlements,
            date_from=date_from,
            date_to=date_to,
        )
        rows.append(
            {
                "id": str(party.pk),
                "name": party.name,
                "opening_balance": str(statement.opening_balance),
                "total_credit": str(statement.total_credit),
                "total_settlement": str(statement.total_settlement),
                "outstanding": str(statement.closing_balance),
                "outstanding_display": format_balance(statement.closing_balance, kind=kind),
            }
        )
    return rows

# accounting/services/balances.py

"""
COUNTERPARTY BALANCE PROPAGATION

Keeps Customer.balance / Supplier.balance in step with the documents that
move them:

  customer: + credit-mode bills      - receipts (CustomerPayment)
  supplier: + purchases              - payment vouchers (SupplierPayment)
  both:     + (new opening - old opening) when the opening balance is edited

Every change is a compare-and-swap on the counterparty's version, inside
the caller's transaction. accounting.services.reconciliation can recompute
the expected balance from scratch and report drift.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from purchases.models import Supplier
from sales.models import Customer
from store.services.concurrency import cas_update

logger = logging.getLogger("ledger")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def adjust_balance(counterparty, delta, *, reason: str) -> Decimal:
    """
    balance += delta on a fresh read of the row; returns the new balance.
    A zero delta writes nothing.
    """
    delta = _money(delta)
    model = type(counterparty)
    if delta == ZERO:
        return model.objects.values_list("balance", flat=True).get(pk=counterparty.pk)

    current = model.objects.only("balance", "version").get(pk=counterparty.pk)
    new_balance = _money(current.balance) + delta
    cas_update(model, pk=current.pk, expected_version=current.version, balance=new_balance)

    counterparty.balance = new_balance
    counterparty.version = current.version + 1

    logger.info(
        "Balance adjusted",
        extra={
            "counterparty": model._meta.model_name,
            "counterparty_id": str(counterparty.pk),
            "delta": str(delta),
            "balance": str(new_balance),
            "reason": reason,
        },
    )
    return new_balance


# -------------------------------------------------
# Customers / credit sales
# -------------------------------------------------


def customer_named(name: str) -> Customer | None:
    """
    The one customer a bill carrying only a name belongs to: the oldest
    (created_at, then pk) whose name matches case-insensitively.
    """
    name = (name or "").strip()
    if not name:
        return None
    return Customer.objects.filter(name__iexact=name).order_by("created_at", "pk").first()


def resolve_customer(*, customer_id=None, customer_name: str = "") -> Customer | None:
    """By id first, then by case-insensitive exact name."""
    if customer_id:
        customer = Customer.objects.filter(pk=customer_id).first()
        if customer is not None:
            return customer
    return customer_named(customer_name)


def resolve_or_create_customer(*, customer_id=None, customer_name: str = "") -> Customer:
    customer = resolve_customer(customer_id=customer_id, customer_name=customer_name)
    if customer is not None:
        return customer

    name = (customer_name or "").strip() or settings.DEFAULT_WALK_IN_NAME
    customer = Customer.objects.create(name=name)
    logger.info(
        "Customer created from credit sale",
        extra={"customer_id": str(customer.pk), "customer_name": name},
    )
    return customer


@dataclass(frozen=True)
class CreditEffect:
    """What a bill contributes to a customer balance (zero unless Credit)."""

    customer_id: object
    customer_name: str
    amount: Decimal

    @classmethod
    def of_bill(cls, bill) -> "CreditEffect":
        amount = _money(bill.grand_total) if bill.is_credit else ZERO
        return cls(
            customer_id=bill.customer_id,
            customer_name=bill.customer_name or "",
            amount=amount,
        )


def credit_sale_created(bill) -> Customer | None:
    """Returns the customer charged, or None for non-credit bills."""
    if not bill.is_credit:
        return None

    effect = CreditEffect.of_bill(bill)

    customer = resolve_or_create_customer(
        customer_id=effect.customer_id, customer_name=effect.customer_name
    )
    adjust_balance(customer, effect.amount, reason=f"credit sale {bill.bill_number}")
    return customer


def credit_sale_deleted(effect: CreditEffect, *, bill_number: str = "") -> None:
    if effect.amount == ZERO:
        return

    customer = resolve_customer(customer_id=effect.customer_id, customer_name=effect.customer_name)
    if customer is None:
        logger.warning(
            "Credit sale deleted but customer could not be resolved; balance not reversed",
            extra={"bill_number": bill_number, "customer_name": effect.customer_name},
        )
        return

    adjust_balance(customer, -effect.amount, reason=f"credit sale {bill_number} deleted")


def credit_sale_edited(before: CreditEffect, after: CreditEffect, *, bill_number: str = "") -> Customer | None:
    """
    Apply (new effect - original effect), moving the amount between
    customers when the bill changed hands, and handling a switch to or
    from Credit mode (one side is then zero).
    """
    old_customer = (
        resolve_customer(customer_id=before.customer_id, customer_name=before.customer_name)
        if before.amount != ZERO
        else None
    )
    new_customer = (
        resolve_or_create_customer(customer_id=after.customer_id, customer_name=after.customer_name)
        if after.amount != ZERO
        else None
    )

    reason = f"credit sale {bill_number} edited"

    if old_customer is not None and new_customer is not None and old_customer.pk == new_customer.pk:
        adjust_balance(new_customer, after.amount - before.amount, reason=reason)
        return new_customer

    if before.amount != ZERO and old_customer is None:
        logger.warning(
            "Original customer of edited bill could not be resolved; old amount not reversed",
            extra={"bill_number": bill_number, "customer_name": before.customer_name},
        )
    if old_customer is not None:
        adjust_balance(old_customer, -before.amount, reason=reason)
    if new_customer is not None:
        adjust_balance(new_customer, after.amount, reason=reason)
    return new_customer


# -------------------------------------------------
# Payments (customer receipts and supplier vouchers)
# -------------------------------------------------


def payment_recorded(counterparty, amount, *, voucher: str = "") -> None:
    adjust_balance(counterparty, -_money(amount), reason=f"payment {voucher}")


def payment_reversed(counterparty, amount, *, voucher: str = "") -> None:
    adjust_balance(counterparty, _money(amount), reason=f"payment {voucher} deleted")


def payment_changed(old_counterparty, old_amount, new_counterparty, new_amount, *, voucher: str = "") -> None:
    reason = f"payment {voucher} edited"
    if old_counterparty.pk == new_counterparty.pk:
        adjust_balance(new_counterparty, _money(old_amount) - _money(new_amount), reason=reason)
        return
    adjust_balance(old_counterparty, _money(old_amount), reason=reason)
    adjust_balance(new_counterparty, -_money(new_amount), reason=reason)


# -------------------------------------------------
# Purchases
# -------------------------------------------------


def purchase_recorded(supplier: Supplier, amount, *, invoice: str = "") -> None:
    adjust_balance(supplier, _money(amount), reason=f"purchase {invoice}")


def purchase_reversed(supplier: Supplier, amount, *, invoice: str = "") -> None:
    adjust_balance(supplier, -_money(amount), reason=f"purchase {invoice} deleted")


def purchase_changed(old_supplier: Supplier, old_amount, new_supplier: Supplier, new_amount, *, invoice: str = "") -> None:
    reason = f"purchase {invoice} edited"
    if old_supplier.pk == new_supplier.pk:
        adjust_balance(new_supplier, _money(new_amount) - _money(old_amount), reason=reason)
        return
    adjust_balance(old_supplier, -_money(old_amount), reason=reason)
    adjust_balance(new_supplier, _money(new_amount), reason=reason)


# -------------------------------------------------
# Opening balance
# -------------------------------------------------


def opening_balance_changed(counterparty, old_opening, new_opening) -> None:
    adjust_balance(
        counterparty,
        _money(new_opening) - _money(old_opening),
        reason="opening balance edited",
    )

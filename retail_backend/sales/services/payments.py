# sales/services/payments.py

"""
CUSTOMER RECEIPTS (RV-000001, RV-000002, ...)

A receipt settles part of a customer's balance:
- create -> balance -= amount
- edit   -> old receipt reversed, new one applied (also across customers)
- delete -> balance += amount
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from accounting.services.balances import payment_changed, payment_recorded, payment_reversed
from sales.models import Customer, CustomerPayment
from sales.services.exceptions import PaymentError
from store.services.sequences import create_with_number

logger = logging.getLogger("payments")

VOUCHER_PREFIX = "RV-"
VOUCHER_WIDTH = 6


def _customer(customer_id) -> Customer:
    customer = Customer.objects.filter(pk=customer_id).first()
    if customer is None:
        raise PaymentError(f"Customer not found: {customer_id}")
    return customer


def _amount(value) -> Decimal:
    amount = Decimal(str(value or "0"))
    if amount <= Decimal("0"):
        raise PaymentError("amount must be greater than zero")
    return amount


@transaction.atomic
def record_customer_payment(*, customer_id, amount, date=None, method: str = "Cash", notes: str = "") -> CustomerPayment:
    customer = _customer(customer_id)
    amount = _amount(amount)

    fields = {"customer": customer, "amount": amount, "method": method or "Cash", "notes": notes or ""}
    if date is not None:
        fields["date"] = date

    payment = create_with_number(
        CustomerPayment, field="voucher_number", prefix=VOUCHER_PREFIX, width=VOUCHER_WIDTH, **fields
    )
    payment_recorded(customer, amount, voucher=payment.voucher_number)

    logger.info(
        "Customer payment recorded",
        extra={
            "voucher": payment.voucher_number,
            "customer_id": str(customer.pk),
            "amount": str(amount),
        },
    )
    return payment


@transaction.atomic
def update_customer_payment(*, payment_id, data: dict) -> CustomerPayment:
    payment = CustomerPayment.objects.select_for_update().filter(pk=payment_id).first()
    if payment is None:
        raise PaymentError(f"Payment not found: {payment_id}")

    old_customer = payment.customer
    old_amount = payment.amount

    new_customer = _customer(data["customer_id"]) if data.get("customer_id") else old_customer
    new_amount = _amount(data["amount"]) if "amount" in data else old_amount

    payment.customer = new_customer
    payment.amount = new_amount
    for key in ("date", "method", "notes"):
        if key in data:
            setattr(payment, key, data[key])
    payment.save()

    payment_changed(old_customer, old_amount, new_customer, new_amount, voucher=payment.voucher_number)

    logger.info(
        "Customer payment updated",
        extra={
            "voucher": payment.voucher_number,
            "old_amount": str(old_amount),
            "amount": str(new_amount),
            "customer_changed": old_customer.pk != new_customer.pk,
        },
    )
    return payment


@transaction.atomic
def delete_customer_payment(*, payment_id) -> None:
    payment = CustomerPayment.objects.select_for_update().filter(pk=payment_id).first()
    if payment is None:
        raise PaymentError(f"Payment not found: {payment_id}")

    payment_reversed(payment.customer, payment.amount, voucher=payment.voucher_number)
    voucher = payment.voucher_number
    payment.delete()

    logger.info("Customer payment deleted", extra={"voucher": voucher})

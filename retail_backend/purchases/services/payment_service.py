# purchases/services/payment_service.py

"""
SUPPLIER PAYMENT VOUCHERS (PV-000001, PV-000002, ...)

A payment settles part of what the shop owes a supplier:
- create -> supplier balance -= amount
- edit   -> old payment reversed, new one applied (also across suppliers)
- delete -> supplier balance += amount
"""

from decimal import ROUND_HALF_UP, Decimal
import logging

from django.db import transaction

from accounting.services.balances import payment_changed, payment_recorded, payment_reversed
from purchases.models import Supplier, SupplierPayment
from store.services.sequences import create_with_number


logger = logging.getLogger("payments")


class SupplierPaymentError(ValueError):
    pass


TWOPLACES = Decimal("0.01")

VOUCHER_PREFIX = "PV-"
VOUCHER_WIDTH = 6


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _supplier(supplier_id) -> Supplier:
    supplier = Supplier.objects.filter(pk=supplier_id).first()
    if supplier is None:
        logger.error("Supplier payment rejected: supplier not found", extra={"supplier_id": str(supplier_id)})
        raise SupplierPaymentError(f"Supplier not found: {supplier_id}")
    return supplier


def _amount(value) -> Decimal:
    amount = _money(value)
    if amount <= Decimal("0.00"):
        raise SupplierPaymentError("Payment amount must be greater than zero")
    return amount


@transaction.atomic
def pay_supplier(*, supplier_id, amount, date=None, method: str = "Cash", remarks: str = "") -> SupplierPayment:
    supplier = _supplier(supplier_id)
    amount = _amount(amount)

    fields = {"supplier": supplier, "amount": amount, "method": method or "Cash", "remarks": remarks or ""}
    if date is not None:
        fields["date"] = date

    payment = create_with_number(
        SupplierPayment, field="voucher_number", prefix=VOUCHER_PREFIX, width=VOUCHER_WIDTH, **fields
    )
    payment_recorded(supplier, amount, voucher=payment.voucher_number)

    logger.info(
        "Supplier payment recorded",
        extra={
            "voucher": payment.voucher_number,
            "supplier_id": str(supplier.pk),
            "amount": str(amount),
        },
    )
    return payment


@transaction.atomic
def update_supplier_payment(*, payment_id, data: dict) -> SupplierPayment:
    payment = SupplierPayment.objects.select_for_update().filter(pk=payment_id).first()
    if payment is None:
        raise SupplierPaymentError(f"Payment not found: {payment_id}")

    old_supplier = payment.supplier
    old_amount = payment.amount

    new_supplier = _supplier(data["supplier_id"]) if data.get("supplier_id") else old_supplier
    new_amount = _amount(data["amount"]) if "amount" in data else old_amount

    payment.supplier = new_supplier
    payment.amount = new_amount
    for key in ("date", "method", "remarks"):
        if key in data:
            setattr(payment, key, data[key])
    payment.save()

    payment_changed(old_supplier, old_amount, new_supplier, new_amount, voucher=payment.voucher_number)

    logger.info(
        "Supplier payment updated",
        extra={
            "voucher": payment.voucher_number,
            "old_amount": str(old_amount),
            "amount": str(new_amount),
            "supplier_changed": old_supplier.pk != new_supplier.pk,
        },
    )
    return payment


@transaction.atomic
def delete_supplier_payment(*, payment_id) -> None:
    payment = SupplierPayment.objects.select_for_update().filter(pk=payment_id).first()
    if payment is None:
        raise SupplierPaymentError(f"Payment not found: {payment_id}")

    payment_reversed(payment.supplier, payment.amount, voucher=payment.voucher_number)
    voucher = payment.voucher_number
    payment.delete()

    logger.info("Supplier payment deleted", extra={"voucher": voucher})

# purchases/services/purchase_service.py

"""
======================================================
PATH: purchases/services/purchase_service.py
======================================================
PURCHASE SERVICE

Create / edit / delete a supplier purchase atomically.

Create:
1) Header (supplier + invoice number unique per supplier)
2) Stock intake per line (products.services.intake)
3) total_amount = sum(purchase_price * quantity)
4) Supplier balance += total_amount

Edit:
- Old lines' units come off their batches, new lines go on, netted per
  batch and clamped at zero
- Supplier balance moves by (new total - old total), across suppliers if
  the supplier changed

Delete:
- Requires confirm=True
- Supplier balance -= total_amount
- Stock is NOT taken back off the shelf (it may already be sold)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from accounting.services.balances import purchase_changed, purchase_recorded, purchase_reversed
from products.models import StockMovement, parse_expiry
from products.services.intake import flush_pending, receive_line, revert_deltas
from products.services.stock import APPLIED, StockAdjustmentResult
from purchases.models import Purchase, PurchaseItem, Supplier

logger = logging.getLogger("purchases")


class PurchaseError(ValueError):
    pass


class PurchaseNotFound(PurchaseError):
    pass


class ConfirmationRequired(PurchaseError):
    pass


@dataclass(frozen=True)
class PurchaseResult:
    purchase: Purchase
    stock_adjustments: tuple = ()

    def adjustments_as_dicts(self) -> list[dict]:
        return [r.as_dict() for r in self.stock_adjustments]


def _supplier(supplier_id) -> Supplier:
    supplier = Supplier.objects.filter(pk=supplier_id).first()
    if supplier is None:
        raise PurchaseError(f"Supplier not found: {supplier_id}")
    return supplier


def _check_invoice_number(supplier: Supplier, invoice_number: str, *, exclude_pk=None) -> str:
    invoice_number = (invoice_number or "").strip()
    if not invoice_number:
        raise PurchaseError("invoice_number is required")

    qs = Purchase.objects.filter(supplier=supplier, invoice_number__iexact=invoice_number)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise PurchaseError("Invoice number already exists for this supplier")
    return invoice_number


def _receive_lines(purchase: Purchase, items, *, pending: dict, user) -> list[StockAdjustmentResult]:
    """Intake every line and write its PurchaseItem; returns results for new batches."""
    if not items:
        raise PurchaseError("A purchase needs at least one item")

    results = []
    for raw in items:
        line = dict(raw)
        outcome = receive_line(line=line, pending=pending, user=user, purchase=purchase)
        quantity = int(line["quantity"])
        product = outcome.product

        PurchaseItem.objects.create(
            purchase=purchase,
            product=product,
            batch=outcome.batch,
            product_name=product.name,
            company=product.company_name,
            hsn_code=product.hsn_code,
            gst=product.gst,
            units_per_strip=outcome.units // quantity,
            batch_number=outcome.batch.batch_number,
            expiry_date=parse_expiry(line.get("expiry_date")),
            quantity=quantity,
            mrp=line.get("mrp") or 0,
            purchase_price=line.get("purchase_price") or 0,
        )

        if outcome.created_batch:
            results.append(
                StockAdjustmentResult(
                    batch_id=outcome.batch.pk,
                    status=APPLIED,
                    quantity_delta=outcome.units,
                    stock_after=outcome.units,
                    reason="new batch",
                )
            )
    return results


def _store_total(purchase: Purchase):
    total = purchase.recompute_total()
    Purchase.objects.filter(pk=purchase.pk).update(total_amount=total)
    return total


@transaction.atomic
def create_purchase(*, data: dict, user=None) -> PurchaseResult:
    supplier = _supplier(data.get("supplier_id"))
    invoice_number = _check_invoice_number(supplier, data.get("invoice_number"))

    header = {"supplier": supplier, "invoice_number": invoice_number}
    if data.get("invoice_date"):
        header["invoice_date"] = data["invoice_date"]
    if getattr(user, "is_authenticated", False):
        header["created_by"] = user
    purchase = Purchase.objects.create(**header)

    pending: dict = {}
    results = _receive_lines(purchase, data.get("items"), pending=pending, user=user)
    results += flush_pending(
        pending, reason=StockMovement.Reason.PURCHASE, user=user, purchase=purchase
    )

    total = _store_total(purchase)
    purchase_recorded(supplier, total, invoice=invoice_number)

    logger.info(
        "Purchase created",
        extra={
            "purchase_id": str(purchase.pk),
            "supplier_id": str(supplier.pk),
            "invoice_number": invoice_number,
            "total_amount": str(total),
            "lines": purchase.items.count(),
        },
    )
    return PurchaseResult(purchase=purchase, stock_adjustments=tuple(results))


@transaction.atomic
def update_purchase(*, purchase_id, data: dict, user=None) -> PurchaseResult:
    purchase = Purchase.objects.select_for_update().filter(pk=purchase_id).first()
    if purchase is None:
        raise PurchaseNotFound(f"Purchase not found: {purchase_id}")

    old_supplier = purchase.supplier
    old_total = purchase.total_amount

    supplier = _supplier(data["supplier_id"]) if data.get("supplier_id") else old_supplier
    invoice_number = _check_invoice_number(
        supplier, data.get("invoice_number", purchase.invoice_number), exclude_pk=purchase.pk
    )

    pending, results = revert_deltas(list(purchase.items.all()))
    purchase.items.all().delete()

    Purchase.objects.filter(pk=purchase.pk).update(
        supplier=supplier,
        invoice_number=invoice_number,
        invoice_date=data.get("invoice_date") or purchase.invoice_date,
    )
    purchase.refresh_from_db()

    results += _receive_lines(purchase, data.get("items"), pending=pending, user=user)
    results += flush_pending(
        pending, reason=StockMovement.Reason.PURCHASE_EDIT, user=user, purchase=purchase
    )

    total = _store_total(purchase)
    purchase_changed(old_supplier, old_total, supplier, total, invoice=invoice_number)

    logger.info(
        "Purchase updated",
        extra={
            "purchase_id": str(purchase.pk),
            "invoice_number": invoice_number,
            "old_total": str(old_total),
            "total_amount": str(total),
            "supplier_changed": old_supplier.pk != supplier.pk,
        },
    )
    return PurchaseResult(purchase=purchase, stock_adjustments=tuple(results))


@transaction.atomic
def delete_purchase(*, purchase_id, confirm: bool = False) -> str:
    """Returns the deleted invoice number."""
    if not confirm:
        raise ConfirmationRequired(
            "Deleting a purchase reverses the supplier balance but leaves its stock in place. "
            "Resend with confirm=true to proceed."
        )

    purchase = Purchase.objects.select_for_update().filter(pk=purchase_id).first()
    if purchase is None:
        raise PurchaseNotFound(f"Purchase not found: {purchase_id}")

    invoice_number = purchase.invoice_number
    purchase_reversed(purchase.supplier, purchase.total_amount, invoice=invoice_number)
    purchase.delete()

    logger.info(
        "Purchase deleted (stock left in place)",
        extra={"purchase_id": str(purchase_id), "invoice_number": invoice_number},
    )
    return invoice_number

# products/services/intake.py

"""
PURCHASE INTAKE (stock side of a supplier purchase)

For each purchase line:
- no product_id      -> create the Product with its first Batch
- same batch_number  -> top up that batch, refresh mrp / purchase_price / expiry
- otherwise          -> append a new Batch to the product

Units added = quantity (strips/boxes) * units_per_strip.

Top-ups of existing batches are collected in a per-batch delta map and
written once at the end, so an edit (revert old lines, apply new lines)
nets to a single change per batch, clamped at zero.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from products.models import Batch, Product, StockMovement, parse_expiry
from products.services.catalog import ensure_company
from products.services.exceptions import ProductServiceError
from products.services.stock import (
    ON_NEGATIVE_CLAMP,
    StockAdjustmentResult,
    apply_stock_deltas,
    record_initial_stock,
    skipped,
)

logger = logging.getLogger("purchases")

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class IntakeOutcome:
    product: Product
    batch: Batch
    units: int
    created_product: bool
    created_batch: bool


def line_units(*, quantity, units_per_strip) -> int:
    return int(quantity) * max(int(units_per_strip or 1), 1)


def _create_product(line: dict) -> Product:
    return Product.objects.create(
        name=(line.get("product_name") or "").strip(),
        company=ensure_company(line.get("company")),
        hsn_code=line.get("hsn_code") or "",
        gst=_money(line.get("gst")),
        composition=line.get("composition") or "",
        units_per_strip=int(line.get("units_per_strip") or 1),
        is_schedule_h=bool(line.get("is_schedule_h", False)),
    )


def receive_line(*, line: dict, pending: dict, user=None, purchase=None) -> IntakeOutcome:
    """
    Resolve (or create) the product and batch for one purchase line.

    Brand-new batches are inserted with their stock already on them.
    Top-ups of existing batches are added to `pending` for the caller to
    write via flush_pending().
    """
    quantity = int(line.get("quantity") or 0)
    if quantity <= 0:
        raise ProductServiceError("quantity must be greater than zero")

    batch_number = (line.get("batch_number") or "").strip()
    if not batch_number:
        raise ProductServiceError("batch_number is required")

    expiry = parse_expiry(line.get("expiry_date"))
    mrp = _money(line.get("mrp"))
    purchase_price = _money(line.get("purchase_price"))

    created_product = False
    product_id = line.get("product_id")
    if product_id:
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            raise ProductServiceError(f"Product not found: {product_id}")
    else:
        product = _create_product(line)
        created_product = True

    units = line_units(
        quantity=quantity,
        units_per_strip=line.get("units_per_strip") or product.units_per_strip,
    )

    batch = None if created_product else product.batches.filter(batch_number=batch_number).first()

    if batch is not None:
        Batch.objects.filter(pk=batch.pk).update(
            mrp=mrp, purchase_price=purchase_price, expiry_date=expiry
        )
        pending[batch.pk] = pending.get(batch.pk, 0) + units
        return IntakeOutcome(
            product=product, batch=batch, units=units, created_product=False, created_batch=False
        )

    batch = Batch.objects.create(
        product=product,
        batch_number=batch_number,
        expiry_date=expiry,
        stock=units,
        opening_stock=0,
        mrp=mrp,
        purchase_price=purchase_price,
    )
    record_initial_stock(
        batch=batch, reason=StockMovement.Reason.PURCHASE, user=user, purchase=purchase
    )

    logger.info(
        "Batch created from purchase line",
        extra={
            "product_id": str(product.pk),
            "batch_id": str(batch.pk),
            "units": units,
            "new_product": created_product,
        },
    )

    return IntakeOutcome(
        product=product, batch=batch, units=units, created_product=created_product, created_batch=True
    )


def revert_deltas(items) -> tuple[dict, list[StockAdjustmentResult]]:
    """
    Negative per-batch map that takes a purchase's lines back off the
    shelf. Lines that lost their batch reference come back as SKIPPED.
    """
    deltas: dict = defaultdict(int)
    skips = []
    for item in items:
        units = line_units(quantity=item.quantity, units_per_strip=item.units_per_strip)
        if item.batch_id is None:
            skips.append(skipped(None, -units, f"purchase line '{item.product_name}' has no batch"))
            continue
        deltas[item.batch_id] -= units
    return dict(deltas), skips


def flush_pending(
    pending: dict, *, reason: str, user=None, purchase=None
) -> list[StockAdjustmentResult]:
    return apply_stock_deltas(
        pending,
        reason=reason,
        user=user,
        purchase=purchase,
        on_negative=ON_NEGATIVE_CLAMP,
    )

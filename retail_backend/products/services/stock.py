# products/services/stock.py

"""
STOCK ADJUSTMENT SERVICE

Every change to Batch.stock goes through here.

Rules:
- Changes are written with a compare-and-swap on Batch.version
- A sale never drives a batch below zero (InsufficientStockError)
- Purchase reverts clamp at zero instead of failing
- Each applied change appends one StockMovement row
- A change that cannot be tied to a batch is SKIPPED (returned + logged),
  never silently dropped
- Callers run inside transaction.atomic; any raise rolls back the whole action
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from django.db import transaction

from products.models import Batch, StockMovement
from products.services.exceptions import InsufficientStockError, StockAdjustmentError
from store.services.concurrency import cas_update

logger = logging.getLogger("stock")

APPLIED = "APPLIED"
SKIPPED = "SKIPPED"

ON_NEGATIVE_RAISE = "raise"
ON_NEGATIVE_CLAMP = "clamp"


@dataclass(frozen=True)
class StockAdjustmentResult:
    batch_id: object
    status: str
    quantity_delta: int
    stock_after: int | None = None
    reason: str = ""

    @property
    def applied(self) -> bool:
        return self.status == APPLIED

    def as_dict(self) -> dict:
        return {
            "batch_id": str(self.batch_id) if self.batch_id else None,
            "status": self.status,
            "quantity_delta": self.quantity_delta,
            "stock_after": self.stock_after,
            "reason": self.reason,
        }


def skipped(batch_id, quantity_delta: int, why: str) -> StockAdjustmentResult:
    logger.warning(
        "Stock adjustment skipped",
        extra={"batch_id": str(batch_id) if batch_id else None, "delta": quantity_delta, "why": why},
    )
    return StockAdjustmentResult(
        batch_id=batch_id, status=SKIPPED, quantity_delta=quantity_delta, reason=why
    )


def _to_int_delta(value) -> int:
    if value is None or value == "":
        raise StockAdjustmentError("quantity_delta is required")

    if isinstance(value, bool):
        raise StockAdjustmentError("quantity_delta must be an integer")

    try:
        delta = int(value)
    except (TypeError, ValueError):
        raise StockAdjustmentError("quantity_delta must be an integer")

    if delta == 0:
        raise StockAdjustmentError("quantity_delta cannot be 0")

    return delta


def bill_stock_deltas(original_lines, new_lines) -> dict:
    """
    Net per-batch stock change for replacing a bill's lines.

    Lines are (batch_id, quantity) pairs. Original quantities go back on
    the shelf (+), new quantities come off it (-). A batch that only
    appears on one side is the zero-to-qty / qty-to-zero case of the same
    map. Zero nets are dropped so they are never written.
    """
    deltas: dict = defaultdict(int)
    for batch_id, quantity in original_lines:
        if batch_id is not None:
            deltas[batch_id] += int(quantity)
    for batch_id, quantity in new_lines:
        if batch_id is not None:
            deltas[batch_id] -= int(quantity)
    return {batch_id: delta for batch_id, delta in deltas.items() if delta != 0}


def apply_stock_delta(
    *,
    batch_id,
    delta,
    reason: str,
    user=None,
    bill=None,
    purchase=None,
    note: str = "",
    on_negative: str = ON_NEGATIVE_RAISE,
) -> StockAdjustmentResult:
    """
    Apply one signed change to a batch.

    on_negative:
      "raise" -> InsufficientStockError when a decrease would go below zero
      "clamp" -> stock stops at zero; the movement records what was removed
    """
    delta = _to_int_delta(delta)

    batch = Batch.objects.select_related("product").filter(pk=batch_id).first()
    if batch is None:
        return skipped(batch_id, delta, "batch not found")

    current = int(batch.stock)
    new_stock = current + delta

    if delta < 0 and new_stock < 0:
        if on_negative == ON_NEGATIVE_CLAMP:
            new_stock = 0
        else:
            raise InsufficientStockError(batch=batch, requested=-delta)

    effective = new_stock - current
    if effective == 0:
        logger.info(
            "Stock already at floor, nothing to write",
            extra={"batch_id": str(batch.pk), "delta": delta},
        )
        return StockAdjustmentResult(
            batch_id=batch.pk, status=APPLIED, quantity_delta=0, stock_after=current
        )

    cas_update(Batch, pk=batch.pk, expected_version=batch.version, stock=new_stock)

    StockMovement.objects.create(
        product=batch.product,
        batch=batch,
        movement_type=(
            StockMovement.MovementType.IN if effective > 0 else StockMovement.MovementType.OUT
        ),
        reason=reason,
        quantity=abs(effective),
        stock_after=new_stock,
        note=note or "",
        performed_by=user,
        bill=bill,
        purchase=purchase,
    )

    logger.info(
        "Stock adjusted",
        extra={
            "batch_id": str(batch.pk),
            "reason": reason,
            "delta": effective,
            "stock_after": new_stock,
        },
    )

    return StockAdjustmentResult(
        batch_id=batch.pk, status=APPLIED, quantity_delta=effective, stock_after=new_stock
    )


def apply_stock_deltas(
    deltas: dict,
    *,
    reason: str,
    user=None,
    bill=None,
    purchase=None,
    on_negative: str = ON_NEGATIVE_RAISE,
) -> list[StockAdjustmentResult]:
    """
    Apply a per-batch delta map. Batches are visited in a stable order so
    concurrent writers touch rows in the same sequence.
    """
    results = []
    for batch_id in sorted(deltas, key=str):
        delta = deltas[batch_id]
        if delta == 0:
            continue
        results.append(
            apply_stock_delta(
                batch_id=batch_id,
                delta=delta,
                reason=reason,
                user=user,
                bill=bill,
                purchase=purchase,
                on_negative=on_negative,
            )
        )
    return results


def record_initial_stock(*, batch: Batch, reason: str, user=None, purchase=None) -> None:
    """
    Audit row for a batch created with stock already on it (opening stock
    or a first purchase). The batch row itself was just inserted.
    """
    if int(batch.stock) <= 0:
        return
    StockMovement.objects.create(
        product=batch.product,
        batch=batch,
        movement_type=StockMovement.MovementType.IN,
        reason=reason,
        quantity=int(batch.stock),
        stock_after=int(batch.stock),
        performed_by=user,
        purchase=purchase,
    )


@transaction.atomic
def adjust_batch_stock(
    *,
    batch: Batch,
    quantity_delta,
    user=None,
    note: str = "",
) -> StockAdjustmentResult:
    """
    Manual stock correction on one batch (count mismatch, breakage).

    quantity_delta:
      +N -> IN adjustment
      -N -> OUT adjustment (cannot go below zero)
    """
    if batch is None:
        raise StockAdjustmentError("batch is required")

    return apply_stock_delta(
        batch_id=batch.pk,
        delta=quantity_delta,
        reason=StockMovement.Reason.ADJUSTMENT,
        user=user,
        note=note,
    )

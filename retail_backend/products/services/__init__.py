from .stock import (
    APPLIED,
    SKIPPED,
    StockAdjustmentResult,
    adjust_batch_stock,
    apply_stock_deltas,
    bill_stock_deltas,
)

__all__ = [
    "APPLIED",
    "SKIPPED",
    "StockAdjustmentResult",
    "adjust_batch_stock",
    "apply_stock_deltas",
    "bill_stock_deltas",
]

# products/services/exceptions.py

"""
PRODUCT / STOCK SERVICE ERRORS
"""


class ProductServiceError(Exception):
    """Base exception for product, batch and stock service failures."""


class StockAdjustmentError(ProductServiceError):
    """Raised when a stock change request itself is malformed."""


class InsufficientStockError(StockAdjustmentError):
    """Raised when a sale would drive a batch below zero."""

    def __init__(self, *, batch, requested: int):
        self.batch_id = batch.pk
        self.available = int(batch.stock)
        self.requested = int(requested)
        super().__init__(
            f"Insufficient stock for {batch.product.name} batch {batch.batch_number}: "
            f"available {self.available}, requested {self.requested}"
        )


class ReferencedRecordError(ProductServiceError):
    """Raised when deleting a product/batch that bills or purchases still reference."""


class GstRateInUseError(ProductServiceError):
    """Raised when deleting a GST rate that products still carry."""


class DuplicateRecordError(ProductServiceError):
    """Raised when a master record (company, GST rate, batch) already exists."""

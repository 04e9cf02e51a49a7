"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .batch import Batch, parse_expiry
from .company import Company
from .gst_rate import GstRate
from .product import Product
from .stock_movement import StockMovement

__all__ = [
    "Batch",
    "Company",
    "GstRate",
    "Product",
    "StockMovement",
    "parse_expiry",
]

# products/views/__init__.py

"""
Products views package exports (router imports).
"""

from .batch import BatchViewSet, StockMovementViewSet
from .catalog import CompanyViewSet, GstRateViewSet
from .product import ProductViewSet

__all__ = [
    "BatchViewSet",
    "CompanyViewSet",
    "GstRateViewSet",
    "ProductViewSet",
    "StockMovementViewSet",
]

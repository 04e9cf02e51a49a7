# products/serializers/__init__.py

from .batch import (
    BatchCreateSerializer,
    BatchSerializer,
    ExpiryField,
    StockAdjustSerializer,
    StockMovementSerializer,
)
from .catalog import CompanySerializer, GstRateSerializer
from .product import (
    BulkProductImportSerializer,
    ProductCreateSerializer,
    ProductSerializer,
)

__all__ = [
    "BatchCreateSerializer",
    "BatchSerializer",
    "BulkProductImportSerializer",
    "CompanySerializer",
    "ExpiryField",
    "GstRateSerializer",
    "ProductCreateSerializer",
    "ProductSerializer",
    "StockAdjustSerializer",
    "StockMovementSerializer",
]

# store/services/backup.py

"""
BACKUP EXPORT

One JSON document with every collection the shop owns:

    {
      "schemaVersion": "1.0",
      "exportDate": "<ISO datetime>",
      "user": {...} | null,
      "data": {"companyProfile": {...}, "products": [...], "bills": [...], ...}
    }

Each collection is written with the same serializer the API uses, so a
backup row looks exactly like an API row. There is no restore path.
"""

from __future__ import annotations

import logging

from django.utils import timezone

from products.models import Company, GstRate, Product, StockMovement
from products.serializers import (
    CompanySerializer,
    GstRateSerializer,
    ProductSerializer,
    StockMovementSerializer,
)
from purchases.api.serializers import (
    PurchaseSerializer,
    SupplierPaymentSerializer,
    SupplierSerializer,
)
from purchases.models import Purchase, Supplier, SupplierPayment
from sales.models import Bill, Customer, CustomerPayment, Salesman
from sales.serializers import (
    BillSerializer,
    CustomerPaymentSerializer,
    CustomerSerializer,
    SalesmanSerializer,
)
from store.models import CompanyProfile, SystemConfig
from store.serializers import CompanyProfileSerializer, SystemConfigSerializer

logger = logging.getLogger("backup")

SCHEMA_VERSION = "1.0"


def _collections() -> dict:
    return {
        "products": (
            ProductSerializer,
            Product.objects.select_related("company").prefetch_related("batches").order_by("name"),
        ),
        "companies": (CompanySerializer, Company.objects.order_by("name")),
        "gstRates": (GstRateSerializer, GstRate.objects.order_by("rate")),
        "customers": (CustomerSerializer, Customer.objects.order_by("name")),
        "salesmen": (SalesmanSerializer, Salesman.objects.order_by("name")),
        "bills": (
            BillSerializer,
            Bill.objects.select_related("salesman").prefetch_related("items").order_by("date", "created_at"),
        ),
        "customerPayments": (
            CustomerPaymentSerializer,
            CustomerPayment.objects.select_related("customer").order_by("date", "created_at"),
        ),
        "suppliers": (SupplierSerializer, Supplier.objects.order_by("name")),
        "purchases": (
            PurchaseSerializer,
            Purchase.objects.select_related("supplier").prefetch_related("items").order_by("invoice_date", "created_at"),
        ),
        "supplierPayments": (
            SupplierPaymentSerializer,
            SupplierPayment.objects.select_related("supplier").order_by("date", "created_at"),
        ),
        "stockMovements": (
            StockMovementSerializer,
            StockMovement.objects.select_related("product", "batch", "bill", "purchase").order_by("created_at"),
        ),
    }


def build_backup(*, user=None) -> dict:
    data = {
        "companyProfile": CompanyProfileSerializer(CompanyProfile.load()).data,
        "systemConfig": SystemConfigSerializer(SystemConfig.load()).data,
    }
    counts = {}
    for key, (serializer_class, qs) in _collections().items():
        data[key] = serializer_class(qs, many=True).data
        counts[key] = len(data[key])

    exported_by = None
    if getattr(user, "is_authenticated", False):
        exported_by = {"id": user.pk, "username": user.get_username(), "email": user.email}

    logger.info("Backup built", extra={"collections": counts})
    return {
        "schemaVersion": SCHEMA_VERSION,
        "exportDate": timezone.now().isoformat(),
        "user": exported_by,
        "data": data,
    }


def backup_filename(*, on=None) -> str:
    day = on or timezone.localdate()
    return f"backup_{day.isoformat()}.json"

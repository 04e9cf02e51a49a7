# products/services/catalog.py

"""
CATALOG MAINTENANCE

Products, batches, companies and the GST master.

Deletion guards:
- a batch can be deleted only while no bill line and no purchase line uses it
- a product can be deleted only while no bill line and no purchase line uses it
- a GST rate can be deleted only while no product carries that percentage
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.apps import apps
from django.db import transaction

from products.models import Batch, Company, GstRate, Product, StockMovement, parse_expiry
from products.services.exceptions import (
    DuplicateRecordError,
    GstRateInUseError,
    ProductServiceError,
    ReferencedRecordError,
)
from products.services.stock import record_initial_stock
from store.models import SystemConfig

logger = logging.getLogger("catalog")

TWOPLACES = Decimal("0.01")

BARCODE_WIDTH = 6

PRODUCT_FIELDS = (
    "name",
    "hsn_code",
    "gst",
    "barcode",
    "composition",
    "units_per_strip",
    "is_schedule_h",
    "is_active",
)


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _bill_items():
    return apps.get_model("sales", "BillItem").objects


def _purchase_items():
    return apps.get_model("purchases", "PurchaseItem").objects


# -------------------------------------------------
# Companies
# -------------------------------------------------


def ensure_company(name) -> Company | None:
    """Return the company with this name (case-insensitive), creating it if needed."""
    name = (name or "").strip()
    if not name:
        return None
    company = Company.objects.filter(name__iexact=name).first()
    if company is None:
        company = Company.objects.create(name=name)
        logger.info("Company created", extra={"company": name})
    return company


# -------------------------------------------------
# Products
# -------------------------------------------------


def next_retail_barcode() -> str:
    highest = 0
    for code in Product.objects.exclude(barcode="").values_list("barcode", flat=True):
        code = (code or "").strip()
        if code.isdigit():
            highest = max(highest, int(code))
    return str(highest + 1).zfill(BARCODE_WIDTH)


@transaction.atomic
def add_product_with_batch(*, product_data: dict, batch_data: dict, user=None) -> Product:
    """
    Create a product together with its first batch.

    batch_data["stock"] is in units (tablets); it becomes the opening stock.
    """
    fields = {k: product_data[k] for k in PRODUCT_FIELDS if k in product_data}
    fields["company"] = ensure_company(product_data.get("company"))

    if not (fields.get("barcode") or "").strip() and SystemConfig.load().is_retail:
        fields["barcode"] = next_retail_barcode()

    product = Product.objects.create(**fields)
    add_batch(product=product, batch_data=batch_data, user=user)

    logger.info(
        "Product created",
        extra={"product_id": str(product.pk), "product_name": product.name},
    )
    return product


@transaction.atomic
def update_product(*, product: Product, data: dict) -> Product:
    for key in PRODUCT_FIELDS:
        if key in data:
            setattr(product, key, data[key])
    if "company" in data:
        product.company = ensure_company(data.get("company"))
    product.save()
    return product


@transaction.atomic
def delete_product(*, product: Product) -> None:
    if _bill_items().filter(product=product).exists():
        raise ReferencedRecordError(
            f'Cannot delete "{product.name}": it is part of one or more sales records.'
        )
    if _purchase_items().filter(product=product).exists():
        raise ReferencedRecordError(
            f'Cannot delete "{product.name}": it is part of one or more purchase records.'
        )

    logger.info("Product deleted", extra={"product_id": str(product.pk)})
    product.delete()


# -------------------------------------------------
# Batches
# -------------------------------------------------


@transaction.atomic
def add_batch(*, product: Product, batch_data: dict, user=None) -> Batch:
    batch_number = (batch_data.get("batch_number") or "").strip()
    if product.batches.filter(batch_number=batch_number).exists():
        raise DuplicateRecordError(
            f"Batch {batch_number} already exists for {product.name}"
        )

    stock = int(batch_data.get("stock") or 0)
    if stock < 0:
        raise ProductServiceError("Opening stock cannot be negative")

    sale_rate = batch_data.get("sale_rate")
    batch = Batch.objects.create(
        product=product,
        batch_number=batch_number,
        expiry_date=parse_expiry(batch_data.get("expiry_date")),
        stock=stock,
        opening_stock=stock,
        mrp=_money(batch_data.get("mrp")),
        purchase_price=_money(batch_data.get("purchase_price")),
        sale_rate=_money(sale_rate) if sale_rate not in (None, "") else None,
    )

    record_initial_stock(batch=batch, reason=StockMovement.Reason.OPENING, user=user)
    return batch


@transaction.atomic
def delete_batch(*, batch: Batch) -> None:
    if _bill_items().filter(batch=batch).exists():
        raise ReferencedRecordError(
            "Cannot delete batch: this batch is part of a sales record."
        )
    if _purchase_items().filter(batch=batch).exists():
        raise ReferencedRecordError(
            "Cannot delete batch: this batch is linked to a purchase entry. "
            "Edit or delete the corresponding purchase first."
        )

    logger.info(
        "Batch deleted",
        extra={"batch_id": str(batch.pk), "product_id": str(batch.product_id)},
    )
    batch.delete()


# -------------------------------------------------
# Bulk import
# -------------------------------------------------


def _product_key(name, company) -> str:
    return f"{(name or '').strip().lower()}|{(company or '').strip().lower()}"


@transaction.atomic
def bulk_import_products(*, rows: list[dict]) -> dict:
    """
    Import products without batches (stock arrives later via purchases).

    Rows whose (name, company) already exists, case-insensitively, are
    skipped, including repeats inside the same import.
    """
    existing = {
        _product_key(name, company)
        for name, company in Product.objects.values_list("name", "company__name")
    }

    success = 0
    skipped_rows = 0
    for row in rows:
        key = _product_key(row.get("name"), row.get("company"))
        if key in existing:
            skipped_rows += 1
            continue

        fields = {k: row[k] for k in PRODUCT_FIELDS if k in row}
        fields["company"] = ensure_company(row.get("company"))
        Product.objects.create(**fields)
        existing.add(key)
        success += 1

    logger.info("Bulk product import", extra={"success": success, "skipped": skipped_rows})
    return {"success": success, "skipped": skipped_rows}


# -------------------------------------------------
# GST master
# -------------------------------------------------


def _rate(value) -> Decimal:
    rate = _money(value)
    if rate < Decimal("0.00") or rate > Decimal("100.00"):
        raise ProductServiceError("GST rate must be between 0 and 100")
    return rate


@transaction.atomic
def add_gst_rate(*, rate) -> GstRate:
    rate = _rate(rate)
    if GstRate.objects.filter(rate=rate).exists():
        raise DuplicateRecordError(f"GST rate {rate}% already exists.")
    return GstRate.objects.create(rate=rate)


@transaction.atomic
def update_gst_rate(*, gst_rate: GstRate, rate) -> GstRate:
    rate = _rate(rate)
    if GstRate.objects.filter(rate=rate).exclude(pk=gst_rate.pk).exists():
        raise DuplicateRecordError(f"GST rate {rate}% already exists.")
    gst_rate.rate = rate
    gst_rate.save(update_fields=["rate"])
    return gst_rate


@transaction.atomic
def delete_gst_rate(*, gst_rate: GstRate) -> None:
    if Product.objects.filter(gst=gst_rate.rate).exists():
        raise GstRateInUseError(
            f"Cannot delete GST rate {gst_rate.rate}%. It is assigned to one or more "
            "products. Update those products first."
        )
    gst_rate.delete()

# products/models/batch.py

"""
BATCH (one manufacturer lot of a product)

- stock is counted in the product's smallest unit (tablets, pieces)
- mrp / purchase_price / sale_rate are per strip (or box)
- stock and version are written ONLY through products.services.stock
  using compare-and-swap updates
- expiry is month precision on the wire ("YYYY-MM"); stored as the last
  day of that month
"""

import calendar
import uuid
from datetime import date, datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from .product import Product


def parse_expiry(value) -> date:
    """
    Accept a date, "YYYY-MM" or "YYYY-MM-DD". Month-only values resolve to
    the last day of the month.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = (str(value or "")).strip()
    if not raw:
        raise ValidationError("expiry_date is required")

    try:
        if len(raw) == 7:
            year, month = (int(p) for p in raw.split("-"))
            return date(year, month, calendar.monthrange(year, month)[1])
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationError("expiry_date must be YYYY-MM or YYYY-MM-DD") from exc


class Batch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="batches",
    )

    batch_number = models.CharField(max_length=128)
    expiry_date = models.DateField()

    stock = models.IntegerField(default=0, help_text="Units on hand (service-managed only)")
    opening_stock = models.IntegerField(default=0)

    mrp = models.DecimalField(max_digits=12, decimal_places=2)
    purchase_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    sale_rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Selling price per strip; falls back to mrp when empty.",
    )

    version = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["expiry_date", "created_at"]
        indexes = [
            models.Index(fields=["product", "expiry_date"], name="idx_batch_product_expiry"),
            models.Index(fields=["expiry_date"], name="idx_batch_expiry"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "batch_number"],
                name="uniq_batch_number_per_product",
            ),
            models.CheckConstraint(
                condition=models.Q(mrp__gte=Decimal("0.00")),
                name="chk_batch_mrp_nonnegative",
            ),
        ]

    def clean(self):
        self.batch_number = (self.batch_number or "").strip()
        if not self.batch_number:
            raise ValidationError({"batch_number": "batch_number is required"})

        if not self.expiry_date:
            raise ValidationError({"expiry_date": "expiry_date is required"})

        if self.mrp is None or self.mrp < Decimal("0.00"):
            raise ValidationError({"mrp": "mrp cannot be negative"})

        if self.purchase_price is not None and self.purchase_price < Decimal("0.00"):
            raise ValidationError({"purchase_price": "purchase_price cannot be negative"})

    def save(self, *args, **kwargs):
        if self.expiry_date and not isinstance(self.expiry_date, date):
            self.expiry_date = parse_expiry(self.expiry_date)
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    @property
    def selling_rate(self) -> Decimal:
        return self.sale_rate if self.sale_rate is not None else self.mrp

    @property
    def expiry_label(self) -> str:
        return self.expiry_date.strftime("%Y-%m") if self.expiry_date else ""

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | Batch {self.batch_number}"

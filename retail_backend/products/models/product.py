# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum

from .company import Company


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives in Batch rows, counted in the smallest unit (tablets)
    - units_per_strip converts strips/boxes to units
    - gst is the GST-inclusive tax percent applied to the MRP
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    company = models.ForeignKey(
        Company,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    hsn_code = models.CharField(max_length=20, blank=True, default="")
    gst = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    barcode = models.CharField(max_length=64, blank=True, default="", db_index=True)
    composition = models.CharField(max_length=500, blank=True, default="")

    units_per_strip = models.PositiveIntegerField(default=1)
    is_schedule_h = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="idx_product_name"),
            models.Index(fields=["gst"], name="idx_product_gst"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(units_per_strip__gte=1),
                name="chk_product_units_per_strip_gte_1",
            ),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

        if self.units_per_strip is None or int(self.units_per_strip) < 1:
            raise ValidationError({"units_per_strip": "units_per_strip must be at least 1"})

        if self.gst is None or Decimal(self.gst) < Decimal("0.00"):
            raise ValidationError({"gst": "gst cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    @property
    def company_name(self) -> str:
        return getattr(self.company, "name", "") or ""

    @property
    def total_stock(self) -> int:
        return self.batches.aggregate(total=Sum("stock")).get("total") or 0

    def __str__(self):
        company = self.company_name
        return f"{self.name} ({company})" if company else self.name

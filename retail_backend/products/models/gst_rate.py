# products/models/gst_rate.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class GstRate(models.Model):
    """
    GST master: the list of tax percentages a product may carry.

    Products store the percentage value itself (not a FK), so a rate is
    "in use" while any product has gst == rate.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    rate = models.DecimalField(max_digits=5, decimal_places=2, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["rate"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rate__gte=Decimal("0.00")) & models.Q(rate__lte=Decimal("100.00")),
                name="chk_gst_rate_range",
            ),
        ]

    def clean(self):
        if self.rate is None:
            raise ValidationError({"rate": "rate is required"})
        if self.rate < Decimal("0.00") or self.rate > Decimal("100.00"):
            raise ValidationError({"rate": "rate must be between 0 and 100"})

    def __str__(self):
        return f"{self.rate}%"

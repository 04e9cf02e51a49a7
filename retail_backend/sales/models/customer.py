# sales/models/customer.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Customer(models.Model):
    """
    Credit customer account.

    BALANCE CONVENTION:
    - positive balance = the customer owes the shop (receivable, shown "Dr")
    - negative balance = advance held for the customer (shown "Cr")
    - balance is denormalized; it is written only by
      accounting.services.balances with compare-and-swap on version
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, db_index=True)
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    gstin = models.CharField(max_length=20, blank=True, default="")

    opening_balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    version = models.PositiveIntegerField(default=1)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="idx_customer_name"),
            models.Index(fields=["is_active"], name="idx_customer_active"),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def __str__(self):
        return self.name

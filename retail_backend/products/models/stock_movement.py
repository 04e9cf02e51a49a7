# products/models/stock_movement.py

"""
STOCK MOVEMENT LEDGER

Immutable record of every applied stock change.

GUARANTEES:
- Append-only (no updates, no deletes)
- Movement direction validated against reason where the reason implies one
- Sale-linked movements reference their bill, purchase-linked ones their purchase
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .batch import Batch
from .product import Product


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"

    class Reason(models.TextChoices):
        OPENING = "OPENING", "Opening Stock"
        SALE = "SALE", "Sale"
        SALE_EDIT = "SALE_EDIT", "Sale Edited"
        SALE_REVERSAL = "SALE_REVERSAL", "Sale Deleted"
        PURCHASE = "PURCHASE", "Purchase"
        PURCHASE_EDIT = "PURCHASE_EDIT", "Purchase Edited"
        ADJUSTMENT = "ADJUSTMENT", "Manual Adjustment"

    REASON_TO_MOVEMENT = {
        Reason.OPENING: MovementType.IN,
        Reason.SALE: MovementType.OUT,
        Reason.SALE_REVERSAL: MovementType.IN,
        Reason.PURCHASE: MovementType.IN,
        Reason.SALE_EDIT: None,
        Reason.PURCHASE_EDIT: None,
        Reason.ADJUSTMENT: None,
    }

    SALE_REASONS = {Reason.SALE, Reason.SALE_EDIT, Reason.SALE_REVERSAL}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="stock_movements"
    )
    batch = models.ForeignKey(
        Batch, on_delete=models.CASCADE, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=3, choices=MovementType.choices)
    reason = models.CharField(max_length=20, choices=Reason.choices)

    quantity = models.PositiveIntegerField()
    stock_after = models.IntegerField()

    note = models.CharField(max_length=255, blank=True, default="")

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    bill = models.ForeignKey(
        "sales.Bill",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )
    purchase = models.ForeignKey(
        "purchases.Purchase",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="idx_stockmove_created"),
            models.Index(fields=["reason"], name="idx_stockmove_reason"),
            models.Index(fields=["product", "created_at"], name="idx_stockmove_product_created"),
            models.Index(fields=["batch", "created_at"], name="idx_stockmove_batch_created"),
        ]

    def clean(self):
        if not self.quantity or self.quantity <= 0:
            raise ValidationError("quantity must be greater than zero")

        if self.batch_id and self.product_id and self.batch.product_id != self.product_id:
            raise ValidationError("Batch does not belong to product")

        expected_type = self.REASON_TO_MOVEMENT.get(self.reason)
        if expected_type and self.movement_type != expected_type:
            raise ValidationError(
                f"{self.reason} requires movement_type={expected_type}"
            )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.movement_type == self.MovementType.IN else -self.quantity

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.reason} | {self.signed_quantity}"

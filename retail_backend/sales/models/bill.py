# sales/models/bill.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .customer import Customer
from .salesman import Salesman

User = settings.AUTH_USER_MODEL


class Bill(models.Model):
    """
    A sales invoice.

    GUARANTEES:
    - bill_number is unique ("B" + 4-digit sequence), assigned by the billing service
    - stock and customer balances are mutated ONLY via sales.services.billing
    - totals are derived from lines (MRP is GST inclusive)
    - version guards concurrent edits
    """

    class PaymentMode(models.TextChoices):
        CASH = "Cash", "Cash"
        CREDIT = "Credit", "Credit"
        UPI = "UPI", "UPI"
        CARD = "Card", "Card"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    bill_number = models.CharField(max_length=20, unique=True)
    date = models.DateField(default=timezone.localdate, db_index=True)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bills",
    )
    customer_name = models.CharField(max_length=200, blank=True, default="")
    doctor_name = models.CharField(max_length=200, blank=True, default="")

    salesman = models.ForeignKey(
        Salesman,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bills",
    )

    payment_mode = models.CharField(
        max_length=10, choices=PaymentMode.choices, default=PaymentMode.CASH
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_gst = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    round_off = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0.00"))
    grand_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    version = models.PositiveIntegerField(default=1)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bills_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["date", "created_at"], name="idx_bill_date_created"),
            models.Index(fields=["payment_mode", "date"], name="idx_bill_mode_date"),
            models.Index(fields=["customer", "date"], name="idx_bill_customer_date"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(grand_total__gte=Decimal("0.00")),
                name="chk_bill_grand_total_nonnegative",
            ),
        ]

    def clean(self):
        if not (self.bill_number or "").strip():
            raise ValidationError({"bill_number": "bill_number is required"})

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    @property
    def is_credit(self) -> bool:
        return self.payment_mode == self.PaymentMode.CREDIT

    def __str__(self):
        return f"{self.bill_number} | {self.customer_name or '-'} | {self.grand_total}"


class BillItem(models.Model):
    """
    One bill line. Product / batch details are snapshotted so the bill
    still prints if the catalog changes later.

    quantity is in base units: strip_qty * units_per_strip + loose_qty.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="items")

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bill_items",
    )
    batch = models.ForeignKey(
        "products.Batch",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bill_items",
    )

    product_name = models.CharField(max_length=255)
    company_name = models.CharField(max_length=200, blank=True, default="")
    batch_number = models.CharField(max_length=128, blank=True, default="")
    expiry_date = models.DateField(null=True, blank=True)
    hsn_code = models.CharField(max_length=20, blank=True, default="")
    units_per_strip = models.PositiveIntegerField(default=1)

    strip_qty = models.PositiveIntegerField(default=0)
    loose_qty = models.PositiveIntegerField(default=0)
    quantity = models.PositiveIntegerField()

    mrp = models.DecimalField(max_digits=12, decimal_places=2)
    gst = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["bill", "id"]
        indexes = [
            models.Index(fields=["batch"], name="idx_billitem_batch"),
            models.Index(fields=["product"], name="idx_billitem_product"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="chk_billitem_quantity_gt_zero",
            ),
        ]

    @property
    def unit_price(self) -> Decimal:
        return self.mrp / Decimal(self.units_per_strip or 1)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

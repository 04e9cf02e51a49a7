# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


User = settings.AUTH_USER_MODEL


class Supplier(models.Model):
    """
    Supplier master.

    BALANCE CONVENTION:
    - positive balance = the shop owes the supplier (payable, shown "Cr")
    - negative balance = advance paid to the supplier (shown "Dr")
    - opening_balance uses the same sign convention
    - balance is written only by accounting.services.balances (CAS on version)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
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
            models.Index(fields=["name"], name="idx_supplier_name"),
            models.Index(fields=["is_active"], name="idx_supplier_active"),
        ]
        constraints = [
            models.UniqueConstraint(Lower("name"), name="uniq_supplier_name_ci"),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def __str__(self):
        return self.name


class Purchase(models.Model):
    """
    Supplier invoice.

    Creating / editing a purchase is performed by services:
    - stock intake per line (products.services.intake)
    - supplier balance += total_amount (accounting.services.balances)

    Deleting a purchase reverses the supplier balance but does NOT take the
    stock back off the shelf.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchases",
    )

    invoice_number = models.CharField(max_length=64)
    invoice_date = models.DateField(default=timezone.localdate)

    total_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-invoice_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["supplier", "invoice_number"],
                name="uniq_supplier_invoice_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=Decimal("0.00")),
                name="purchase_total_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "invoice_date"], name="idx_purchase_supplier_date"),
            models.Index(fields=["invoice_date"], name="idx_purchase_date"),
        ]

    def clean(self):
        if not (self.invoice_number or "").strip():
            raise ValidationError({"invoice_number": "invoice_number is required"})

        if self.total_amount is not None and self.total_amount < Decimal("0.00"):
            raise ValidationError({"total_amount": "total_amount cannot be negative"})

    def recompute_total(self) -> Decimal:
        total = sum((item.line_total for item in self.items.all()), Decimal("0.00"))
        self.total_amount = _money(total)
        return self.total_amount

    def __str__(self):
        return f"{self.supplier} | {self.invoice_number}"


class PurchaseItem(models.Model):
    """
    Purchase line. quantity is in strips/boxes; stock added is
    quantity * units_per_strip units.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase = models.ForeignKey(
        Purchase,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_items",
    )
    batch = models.ForeignKey(
        "products.Batch",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_items",
    )

    product_name = models.CharField(max_length=255)
    company = models.CharField(max_length=200, blank=True, default="")
    hsn_code = models.CharField(max_length=20, blank=True, default="")
    gst = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    units_per_strip = models.PositiveIntegerField(default=1)

    batch_number = models.CharField(max_length=128)
    expiry_date = models.DateField()

    quantity = models.PositiveIntegerField()
    mrp = models.DecimalField(max_digits=12, decimal_places=2)
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        ordering = ["purchase", "id"]
        indexes = [
            models.Index(fields=["batch"], name="idx_purchaseitem_batch"),
            models.Index(fields=["product"], name="idx_purchaseitem_product"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="purchase_item_qty_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(purchase_price__gte=Decimal("0.00")),
                name="purchase_item_price_nonnegative",
            ),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "quantity must be > 0"})

        if self.purchase_price is None or self.purchase_price < Decimal("0.00"):
            raise ValidationError({"purchase_price": "purchase_price cannot be negative"})

        if not (self.batch_number or "").strip():
            raise ValidationError({"batch_number": "batch_number is required"})

    def save(self, *args, **kwargs):
        self.line_total = _money(Decimal(self.purchase_price) * Decimal(int(self.quantity)))
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    @property
    def units(self) -> int:
        return int(self.quantity) * max(int(self.units_per_strip or 1), 1)

    def __str__(self):
        return f"{self.product_name} | {self.batch_number} | {self.quantity}"


class SupplierPayment(models.Model):
    """
    Money paid to a supplier (payment voucher "PV-000001").
    A payment settles part of the supplier balance.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    voucher_number = models.CharField(max_length=20, unique=True)
    date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    method = models.CharField(max_length=30, default="Cash")
    remarks = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="supplier_payment_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "date"], name="idx_supppay_supplier_date"),
        ]

    def clean(self):
        if self.amount is None or self.amount <= Decimal("0.00"):
            raise ValidationError({"amount": "amount must be greater than zero"})

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.voucher_number} | {self.supplier} | {self.amount}"

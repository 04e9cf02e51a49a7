import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(db_index=True, max_length=200)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("address", models.TextField(blank=True, default="")),
                ("gstin", models.CharField(blank=True, default="", max_length=20)),
                ("opening_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("version", models.PositiveIntegerField(default=1)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="idx_customer_name"),
                    models.Index(fields=["is_active"], name="idx_customer_active"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Salesman",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "salesmen",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Bill",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("bill_number", models.CharField(max_length=20, unique=True)),
                ("date", models.DateField(db_index=True, default=django.utils.timezone.localdate)),
                ("customer_name", models.CharField(blank=True, default="", max_length=200)),
                ("doctor_name", models.CharField(blank=True, default="", max_length=200)),
                (
                    "payment_mode",
                    models.CharField(
                        choices=[("Cash", "Cash"), ("Credit", "Credit"), ("UPI", "UPI"), ("Card", "Card")],
                        default="Cash",
                        max_length=10,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_gst", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("round_off", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=6)),
                ("grand_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bills_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bills",
                        to="sales.customer",
                    ),
                ),
                (
                    "salesman",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bills",
                        to="sales.salesman",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["date", "created_at"], name="idx_bill_date_created"),
                    models.Index(fields=["payment_mode", "date"], name="idx_bill_mode_date"),
                    models.Index(fields=["customer", "date"], name="idx_bill_customer_date"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("grand_total__gte", Decimal("0.00"))),
                        name="chk_bill_grand_total_nonnegative",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="BillItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("product_name", models.CharField(max_length=255)),
                ("company_name", models.CharField(blank=True, default="", max_length=200)),
                ("batch_number", models.CharField(blank=True, default="", max_length=128)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("hsn_code", models.CharField(blank=True, default="", max_length=20)),
                ("units_per_strip", models.PositiveIntegerField(default=1)),
                ("strip_qty", models.PositiveIntegerField(default=0)),
                ("loose_qty", models.PositiveIntegerField(default=0)),
                ("quantity", models.PositiveIntegerField()),
                ("mrp", models.DecimalField(decimal_places=2, max_digits=12)),
                ("gst", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("total", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "bill",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.bill",
                    ),
                ),
                (
                    "batch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bill_items",
                        to="products.batch",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bill_items",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["bill", "id"],
                "indexes": [
                    models.Index(fields=["batch"], name="idx_billitem_batch"),
                    models.Index(fields=["product"], name="idx_billitem_product"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="chk_billitem_quantity_gt_zero",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="CustomerPayment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("voucher_number", models.CharField(max_length=20, unique=True)),
                ("date", models.DateField(db_index=True, default=django.utils.timezone.localdate)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("method", models.CharField(default="Cash", max_length=30)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="sales.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["customer", "date"], name="idx_custpay_customer_date"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", Decimal("0.00"))),
                        name="chk_customer_payment_amount_gt_zero",
                    )
                ],
            },
        ),
    ]

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.db.models.functions.text
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "companies",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("name"), name="uniq_company_name_ci"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="GstRate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("rate", models.DecimalField(decimal_places=2, max_digits=5, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["rate"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("rate__gte", Decimal("0.00")), ("rate__lte", Decimal("100.00"))),
                        name="chk_gst_rate_range",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("hsn_code", models.CharField(blank=True, default="", max_length=20)),
                ("gst", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("barcode", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("composition", models.CharField(blank=True, default="", max_length=500)),
                ("units_per_strip", models.PositiveIntegerField(default=1)),
                ("is_schedule_h", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="products.company",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="idx_product_name"),
                    models.Index(fields=["gst"], name="idx_product_gst"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("units_per_strip__gte", 1)),
                        name="chk_product_units_per_strip_gte_1",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Batch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("batch_number", models.CharField(max_length=128)),
                ("expiry_date", models.DateField()),
                ("stock", models.IntegerField(default=0, help_text="Units on hand (service-managed only)")),
                ("opening_stock", models.IntegerField(default=0)),
                ("mrp", models.DecimalField(decimal_places=2, max_digits=12)),
                ("purchase_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "sale_rate",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Selling price per strip; falls back to mrp when empty.",
                        max_digits=12,
                        null=True,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="batches",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["expiry_date", "created_at"],
                "indexes": [
                    models.Index(fields=["product", "expiry_date"], name="idx_batch_product_expiry"),
                    models.Index(fields=["expiry_date"], name="idx_batch_expiry"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "batch_number"), name="uniq_batch_number_per_product"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("mrp__gte", Decimal("0.00"))),
                        name="chk_batch_mrp_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "movement_type",
                    models.CharField(choices=[("IN", "Stock In"), ("OUT", "Stock Out")], max_length=3),
                ),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("OPENING", "Opening Stock"),
                            ("SALE", "Sale"),
                            ("SALE_EDIT", "Sale Edited"),
                            ("SALE_REVERSAL", "Sale Deleted"),
                            ("PURCHASE", "Purchase"),
                            ("PURCHASE_EDIT", "Purchase Edited"),
                            ("ADJUSTMENT", "Manual Adjustment"),
                        ],
                        max_length=20,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("stock_after", models.IntegerField()),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_movements",
                        to="products.batch",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_movements",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="idx_stockmove_created"),
                    models.Index(fields=["reason"], name="idx_stockmove_reason"),
                    models.Index(fields=["product", "created_at"], name="idx_stockmove_product_created"),
                    models.Index(fields=["batch", "created_at"], name="idx_stockmove_batch_created"),
                ],
            },
        ),
    ]

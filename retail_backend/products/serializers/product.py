# products/serializers/product.py

"""
PRODUCT SERIALIZERS

- ProductSerializer: canonical read/update shape, batches nested read-only
- ProductCreateSerializer: product + its first batch in one request
- BulkProductImportSerializer: batch-less rows for spreadsheet import

Stock is derived from Batch rows only (single source of truth); list views
annotate total_stock to avoid N+1.
"""

from django.db.models import Sum
from rest_framework import serializers

from products.models import Product

from .batch import BatchCreateSerializer, BatchSerializer


class ProductSerializer(serializers.ModelSerializer):
    """
    Canonical Product Serializer.

    GUARANTEES:
    - company is read and written by name (created on demand by the service)
    - total_stock is aggregated from Batch (never stored on Product)
    """

    company = serializers.CharField(
        source="company_name", required=False, allow_blank=True, max_length=200
    )
    total_stock = serializers.SerializerMethodField(read_only=True)
    batches = BatchSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "company",
            "hsn_code",
            "gst",
            "barcode",
            "composition",
            "units_per_strip",
            "is_schedule_h",
            "is_active",
            "total_stock",
            "batches",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "total_stock", "batches", "created_at", "updated_at"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value

    def validate_gst(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("gst must be non-negative")
        return value

    def get_total_stock(self, obj) -> int:
        annotated = getattr(obj, "stock_total", None)
        if annotated is not None:
            return int(annotated)
        return int(obj.batches.aggregate(total=Sum("stock")).get("total") or 0)

    def to_internal_value(self, data):
        validated = super().to_internal_value(data)
        if "company_name" in validated:
            validated["company"] = validated.pop("company_name")
        return validated


class ProductCreateSerializer(ProductSerializer):
    first_batch = BatchCreateSerializer(write_only=True)

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ["first_batch"]


class ProductImportRowSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    company = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    hsn_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    gst = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, required=False, default=0)
    barcode = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    composition = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    units_per_strip = serializers.IntegerField(min_value=1, required=False, default=1)
    is_schedule_h = serializers.BooleanField(required=False, default=False)


class BulkProductImportSerializer(serializers.Serializer):
    products = ProductImportRowSerializer(many=True, allow_empty=False)

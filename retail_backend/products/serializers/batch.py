# products/serializers/batch.py

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from products.models import Batch, StockMovement, parse_expiry


class ExpiryField(serializers.Field):
    """Reads "YYYY-MM" or "YYYY-MM-DD"; writes "YYYY-MM"."""

    def to_internal_value(self, data):
        try:
            return parse_expiry(data)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.messages)

    def to_representation(self, value):
        return value.strftime("%Y-%m") if value else None


class BatchSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    expiry_date = ExpiryField()
    selling_rate = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Batch
        fields = [
            "id",
            "product",
            "product_name",
            "batch_number",
            "expiry_date",
            "stock",
            "opening_stock",
            "mrp",
            "purchase_price",
            "sale_rate",
            "selling_rate",
            "version",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "product",
            "product_name",
            "stock",
            "opening_stock",
            "selling_rate",
            "version",
            "created_at",
        ]


class BatchCreateSerializer(serializers.Serializer):
    batch_number = serializers.CharField(max_length=128)
    expiry_date = ExpiryField()
    stock = serializers.IntegerField(min_value=0, default=0, help_text="Opening stock in units")
    mrp = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    purchase_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, default=0
    )
    sale_rate = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )

    def validate_batch_number(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("batch_number is required")
        return value


class StockAdjustSerializer(serializers.Serializer):
    quantity_delta = serializers.IntegerField()
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate_quantity_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("quantity_delta cannot be 0")
        return value


class StockMovementSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    batch_number = serializers.CharField(source="batch.batch_number", read_only=True)
    bill_number = serializers.CharField(source="bill.bill_number", read_only=True, default=None)
    invoice_number = serializers.CharField(
        source="purchase.invoice_number", read_only=True, default=None
    )

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "product_name",
            "batch",
            "batch_number",
            "movement_type",
            "reason",
            "quantity",
            "stock_after",
            "note",
            "bill",
            "bill_number",
            "purchase",
            "invoice_number",
            "performed_by",
            "created_at",
        ]
        read_only_fields = fields

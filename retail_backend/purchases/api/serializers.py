# purchases/api/serializers.py

from rest_framework import serializers

from accounting.services.ledger import SUPPLIER, format_balance
from products.serializers import ExpiryField
from purchases.models import Purchase, PurchaseItem, Supplier, SupplierPayment


class SupplierSerializer(serializers.ModelSerializer):
    balance_display = serializers.SerializerMethodField()
    expected_version = serializers.IntegerField(write_only=True, required=False, min_value=1)

    class Meta:
        model = Supplier
        fields = [
            "id",
            "name",
            "phone",
            "email",
            "address",
            "gstin",
            "opening_balance",
            "balance",
            "balance_display",
            "version",
            "expected_version",
            "is_active",
            "created_at",
        ]
        read_only_fields = ("id", "balance", "balance_display", "version", "created_at")
        # name uniqueness (case-insensitive) is checked by the supplier service
        validators = []

    def get_balance_display(self, obj) -> str:
        return format_balance(obj.balance, kind=SUPPLIER)


class PurchaseItemInputSerializer(serializers.Serializer):
    """
    product_id set   -> existing product (top up batch or add a new one)
    product_id unset -> new product created from the line details
    """

    product_id = serializers.UUIDField(required=False, allow_null=True)
    product_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    company = serializers.CharField(max_length=200, required=False, allow_blank=True)
    hsn_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    gst = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )
    composition = serializers.CharField(required=False, allow_blank=True)
    units_per_strip = serializers.IntegerField(min_value=1, required=False)
    is_schedule_h = serializers.BooleanField(required=False, default=False)

    batch_number = serializers.CharField(max_length=128)
    expiry_date = ExpiryField()
    quantity = serializers.IntegerField(min_value=1)
    mrp = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    purchase_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)

    def validate(self, attrs):
        if not attrs.get("product_id") and not (attrs.get("product_name") or "").strip():
            raise serializers.ValidationError("product_name is required for a new product")
        return attrs


class PurchaseWriteSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    invoice_number = serializers.CharField(max_length=64)
    invoice_date = serializers.DateField(required=False)
    items = PurchaseItemInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value


class PurchaseItemSerializer(serializers.ModelSerializer):
    expiry_date = ExpiryField(read_only=True)

    class Meta:
        model = PurchaseItem
        fields = [
            "id",
            "product",
            "batch",
            "product_name",
            "company",
            "hsn_code",
            "gst",
            "units_per_strip",
            "batch_number",
            "expiry_date",
            "quantity",
            "mrp",
            "purchase_price",
            "line_total",
        ]
        read_only_fields = fields


class PurchaseSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = PurchaseItemSerializer(many=True, read_only=True)

    class Meta:
        model = Purchase
        fields = [
            "id",
            "supplier",
            "supplier_name",
            "invoice_number",
            "invoice_date",
            "total_amount",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PurchaseDeleteSerializer(serializers.Serializer):
    confirm = serializers.BooleanField(required=False, default=False)


class SupplierPaymentWriteSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    date = serializers.DateField(required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    method = serializers.CharField(max_length=30, required=False, default="Cash")
    remarks = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be greater than zero")
        return value


class SupplierPaymentSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = SupplierPayment
        fields = [
            "id",
            "voucher_number",
            "supplier",
            "supplier_name",
            "date",
            "amount",
            "method",
            "remarks",
            "created_at",
        ]
        read_only_fields = fields

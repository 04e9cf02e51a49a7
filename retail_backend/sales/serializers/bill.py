# sales/serializers/bill.py

from rest_framework import serializers

from products.serializers import ExpiryField
from sales.models import Bill, BillItem


class BillItemSerializer(serializers.ModelSerializer):
    """
    Read serializer for one bill line.

    Product / batch details are the snapshot taken when the line was billed.
    """

    expiry_date = ExpiryField(read_only=True)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=4, read_only=True)

    class Meta:
        model = BillItem
        fields = [
            "id",
            "product",
            "batch",
            "product_name",
            "company_name",
            "batch_number",
            "expiry_date",
            "hsn_code",
            "units_per_strip",
            "strip_qty",
            "loose_qty",
            "quantity",
            "mrp",
            "gst",
            "unit_price",
            "total",
        ]
        read_only_fields = fields


class BillSerializer(serializers.ModelSerializer):
    items = BillItemSerializer(many=True, read_only=True)
    salesman_name = serializers.CharField(source="salesman.name", read_only=True, default=None)

    class Meta:
        model = Bill
        fields = [
            "id",
            "bill_number",
            "date",
            "customer",
            "customer_name",
            "doctor_name",
            "salesman",
            "salesman_name",
            "payment_mode",
            "subtotal",
            "total_gst",
            "round_off",
            "grand_total",
            "version",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BillLineInputSerializer(serializers.Serializer):
    """
    One line of a bill request.

    batch_id is the normal case. A line without a batch (e.g. a product
    whose batch was deleted) is billed but its stock change is SKIPPED.
    """

    batch_id = serializers.UUIDField(required=False, allow_null=True)
    product_id = serializers.UUIDField(required=False, allow_null=True)
    product_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    units_per_strip = serializers.IntegerField(min_value=1, required=False)
    strip_qty = serializers.IntegerField(min_value=0, default=0)
    loose_qty = serializers.IntegerField(min_value=0, default=0)
    mrp = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    gst = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )
    total = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)

    def validate(self, attrs):
        if not attrs.get("batch_id") and not attrs.get("product_id") and not attrs.get("product_name"):
            raise serializers.ValidationError("Each line needs batch_id, product_id or product_name")
        if attrs.get("strip_qty", 0) == 0 and attrs.get("loose_qty", 0) == 0:
            raise serializers.ValidationError("strip_qty or loose_qty must be greater than zero")
        return attrs


class BillWriteSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    doctor_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    salesman_id = serializers.UUIDField(required=False, allow_null=True)
    payment_mode = serializers.ChoiceField(choices=Bill.PaymentMode.choices, required=False)
    expected_version = serializers.IntegerField(required=False, min_value=1)
    items = BillLineInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value


class BillDetailsSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    doctor_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    expected_version = serializers.IntegerField(required=False, min_value=1)

# sales/serializers/payment.py

from rest_framework import serializers

from sales.models import CustomerPayment


class CustomerPaymentSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)

    class Meta:
        model = CustomerPayment
        fields = [
            "id",
            "voucher_number",
            "customer",
            "customer_name",
            "date",
            "amount",
            "method",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class CustomerPaymentWriteSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    date = serializers.DateField(required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    method = serializers.CharField(max_length=30, required=False, default="Cash")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be greater than zero")
        return value

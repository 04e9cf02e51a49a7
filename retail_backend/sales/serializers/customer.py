# sales/serializers/customer.py

from rest_framework import serializers

from accounting.services.ledger import CUSTOMER, format_balance
from sales.models import Customer, Salesman


class CustomerSerializer(serializers.ModelSerializer):
    """
    balance is maintained by the billing / receipt services and is
    read only here. opening_balance may be edited; the balance follows.
    """

    balance_display = serializers.SerializerMethodField()
    expected_version = serializers.IntegerField(write_only=True, required=False, min_value=1)

    class Meta:
        model = Customer
        fields = [
            "id",
            "name",
            "phone",
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
        read_only_fields = ["id", "balance", "balance_display", "version", "created_at"]

    def get_balance_display(self, obj) -> str:
        return format_balance(obj.balance, kind=CUSTOMER)

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value


class SalesmanSerializer(serializers.ModelSerializer):
    class Meta:
        model = Salesman
        fields = ["id", "name", "phone", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]

# products/serializers/catalog.py

from rest_framework import serializers

from products.models import Company, GstRate


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ["id", "name", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("name is required")
        qs = Company.objects.filter(name__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A company with this name already exists")
        return value


class GstRateSerializer(serializers.ModelSerializer):
    rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100
    )

    class Meta:
        model = GstRate
        fields = ["id", "rate", "created_at"]
        read_only_fields = ["id", "created_at"]

# store/serializers/settings.py

from rest_framework import serializers

from store.models import CompanyProfile, SystemConfig


class CompanyProfileSerializer(serializers.ModelSerializer):
    """
    Shop letterhead (singleton).
    """

    class Meta:
        model = CompanyProfile
        fields = ["name", "address", "phone", "email", "gstin", "upi_id", "updated_at"]
        read_only_fields = ["updated_at"]


class SystemConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = SystemConfig
        fields = [
            "software_mode",
            "invoice_printing_format",
            "remark_line1",
            "remark_line2",
            "mrp_editable",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]

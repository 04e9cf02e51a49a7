# sales/serializers/reports.py

from django.utils import timezone
from rest_framework import serializers


class DateWindowSerializer(serializers.Serializer):
    """
    Query-string window; date_from is open-ended when omitted.
    An omitted date_to defaults to today, or to date_from when that is later.
    """

    date_from = serializers.DateField(required=False, allow_null=True, default=None)
    date_to = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        if attrs.get("date_to") is None:
            today = timezone.localdate()
            attrs["date_to"] = max(today, date_from) if date_from else today
        if date_from and date_from > attrs["date_to"]:
            raise serializers.ValidationError("date_from must not be after date_to")
        return attrs

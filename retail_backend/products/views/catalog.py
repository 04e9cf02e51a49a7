# products/views/catalog.py

"""
COMPANY + GST MASTER ENDPOINTS
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import Company, GstRate
from products.serializers import CompanySerializer, GstRateSerializer
from products.services.catalog import add_gst_rate, delete_gst_rate, update_gst_rate
from products.services.exceptions import ProductServiceError


@extend_schema(tags=["products"])
class CompanyViewSet(viewsets.ModelViewSet):
    serializer_class = CompanySerializer
    permission_classes = [IsAuthenticated]
    queryset = Company.objects.order_by("name")
    http_method_names = ["get", "post", "put", "patch", "head", "options"]


@extend_schema(tags=["products"])
class GstRateViewSet(viewsets.ModelViewSet):
    """
    GST master.

    Duplicate rates are refused; a rate cannot be deleted while any product
    carries it (nothing is changed in that case).
    """

    serializer_class = GstRateSerializer
    permission_classes = [IsAuthenticated]
    queryset = GstRate.objects.order_by("rate")

    def create(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            gst_rate = add_gst_rate(rate=s.validated_data["rate"])
        except (ProductServiceError, DjangoValidationError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(GstRateSerializer(gst_rate).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        gst_rate = self.get_object()
        s = self.get_serializer(gst_rate, data=request.data)
        s.is_valid(raise_exception=True)
        try:
            gst_rate = update_gst_rate(gst_rate=gst_rate, rate=s.validated_data["rate"])
        except (ProductServiceError, DjangoValidationError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(GstRateSerializer(gst_rate).data, status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        gst_rate = self.get_object()
        try:
            delete_gst_rate(gst_rate=gst_rate)
        except ProductServiceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

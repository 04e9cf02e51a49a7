# sales/api/viewsets/payment.py

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from sales.models import CustomerPayment
from sales.serializers import CustomerPaymentSerializer, CustomerPaymentWriteSerializer
from sales.services.exceptions import PaymentError
from sales.services.payments import (
    delete_customer_payment,
    record_customer_payment,
    update_customer_payment,
)
from store.services.concurrency import ConcurrentUpdateError


def _error_response(exc) -> Response:
    if isinstance(exc, ConcurrentUpdateError):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, DjangoValidationError):
        return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(tags=["sales"])
class CustomerPaymentViewSet(viewsets.ModelViewSet):
    """
    Receipt vouchers (RV-000001...). Every write moves the customer balance.
    """

    serializer_class = CustomerPaymentSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["customer", "method"]

    def get_queryset(self):
        return CustomerPayment.objects.select_related("customer").order_by("-date", "-created_at")

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return CustomerPaymentWriteSerializer
        return CustomerPaymentSerializer

    def create(self, request, *args, **kwargs):
        s = CustomerPaymentWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            payment = record_customer_payment(**s.validated_data)
        except (PaymentError, ConcurrentUpdateError, DjangoValidationError) as exc:
            return _error_response(exc)
        return Response(CustomerPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        payment = self.get_object()
        s = CustomerPaymentWriteSerializer(data=request.data, partial=partial)
        s.is_valid(raise_exception=True)
        try:
            payment = update_customer_payment(payment_id=payment.pk, data=dict(s.validated_data))
        except (PaymentError, ConcurrentUpdateError, DjangoValidationError) as exc:
            return _error_response(exc)
        return Response(CustomerPaymentSerializer(payment).data, status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        payment = self.get_object()
        try:
            delete_customer_payment(payment_id=payment.pk)
        except (PaymentError, ConcurrentUpdateError) as exc:
            return _error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

# sales/api/viewsets/bill.py

"""
BILL VIEWSET

- POST   /bills/               create (stock out, credit to customer)
- PUT    /bills/<id>/          replace lines + header (netted stock, balance delta)
- PATCH  /bills/<id>/details/  customer_name / doctor_name only
- DELETE /bills/<id>/          stock back, credit reversed

Write responses carry `stock_adjustments`: one entry per batch touched,
APPLIED or SKIPPED with the reason.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.services.exceptions import ProductServiceError
from sales.models import Bill
from sales.serializers import BillDetailsSerializer, BillSerializer, BillWriteSerializer
from sales.services.billing import create_bill, delete_bill, update_bill, update_bill_details
from sales.services.exceptions import BillNotFound, SalesServiceError
from store.services.concurrency import ConcurrentUpdateError

logger = logging.getLogger("billing")


def _error_response(exc) -> Response:
    if isinstance(exc, BillNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ConcurrentUpdateError):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, DjangoValidationError):
        return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


WRITE_ERRORS = (SalesServiceError, ProductServiceError, ConcurrentUpdateError, DjangoValidationError)


@extend_schema(tags=["sales"])
class BillViewSet(viewsets.ModelViewSet):
    serializer_class = BillSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]
    filterset_fields = ["payment_mode", "customer", "salesman"]

    def get_queryset(self):
        qs = Bill.objects.select_related("customer", "salesman").prefetch_related("items")

        params = self.request.query_params
        date_from = parse_date((params.get("date_from") or "").strip())
        date_to = parse_date((params.get("date_to") or "").strip())
        if date_from:
            qs = qs.filter(date__gte=date_from)
        if date_to:
            qs = qs.filter(date__lte=date_to)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(bill_number__iexact=q) | Q(customer_name__icontains=q))

        return qs.order_by("-date", "-created_at")

    def get_serializer_class(self):
        if self.action in ("create", "update"):
            return BillWriteSerializer
        if self.action == "details":
            return BillDetailsSerializer
        return BillSerializer

    @extend_schema(
        parameters=[
            OpenApiParameter(name="date_from", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_to", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=False),
        ]
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    def _payload(self, result, *, http_status):
        bill = self.get_queryset().get(pk=result.bill.pk)
        return Response(
            {
                "bill": BillSerializer(bill).data,
                "stock_adjustments": result.adjustments_as_dicts(),
            },
            status=http_status,
        )

    @extend_schema(request=BillWriteSerializer, responses={201: BillSerializer})
    def create(self, request, *args, **kwargs):
        s = BillWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        data.pop("expected_version", None)

        try:
            result = create_bill(data=data, user=request.user)
        except WRITE_ERRORS as exc:
            return _error_response(exc)
        except Exception:
            logger.exception("Unexpected failure creating bill")
            raise

        return self._payload(result, http_status=status.HTTP_201_CREATED)

    @extend_schema(request=BillWriteSerializer, responses=BillSerializer)
    def update(self, request, *args, **kwargs):
        if kwargs.get("partial"):
            return Response(
                {"detail": "Use PATCH /bills/<id>/details/ for header edits or PUT for a full edit."},
                status=status.HTTP_405_METHOD_NOT_ALLOWED,
            )
        s = BillWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        expected_version = data.pop("expected_version", None)

        try:
            result = update_bill(
                bill_id=kwargs["pk"], data=data, expected_version=expected_version, user=request.user
            )
        except WRITE_ERRORS as exc:
            return _error_response(exc)
        except Exception:
            logger.exception("Unexpected failure updating bill", extra={"bill_id": str(kwargs["pk"])})
            raise

        return self._payload(result, http_status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        try:
            result = delete_bill(bill_id=kwargs["pk"], user=request.user)
        except WRITE_ERRORS as exc:
            return _error_response(exc)
        except Exception:
            logger.exception("Unexpected failure deleting bill", extra={"bill_id": str(kwargs["pk"])})
            raise

        return Response(
            {
                "bill_number": result.bill.bill_number,
                "stock_adjustments": result.adjustments_as_dicts(),
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(request=BillDetailsSerializer, responses=BillSerializer)
    @action(detail=True, methods=["patch"], url_path="details")
    def details(self, request, pk=None):
        s = BillDetailsSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            bill = update_bill_details(bill_id=pk, **s.validated_data)
        except WRITE_ERRORS as exc:
            return _error_response(exc)

        bill = self.get_queryset().get(pk=bill.pk)
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)

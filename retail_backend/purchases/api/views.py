# purchases/api/views.py

"""
PURCHASES API

    /suppliers/                      GET list, POST create
    /suppliers/summary/              GET period summary (opening, purchases, payments, outstanding)
    /suppliers/<id>/                 GET, PATCH
    /suppliers/<id>/ledger/          GET statement (?date_from=&date_to=)
    /purchases/                      GET list, POST create
    /purchases/<id>/                 GET, PUT edit, DELETE (?confirm=true)
    /payments/                       GET list, POST create
    /payments/<id>/                  GET, PATCH, DELETE
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.services.exceptions import CounterpartyNotFound, LedgerWindowError
from accounting.services.ledger import SUPPLIER, counterparty_summary, supplier_ledger
from products.services.exceptions import ProductServiceError
from purchases.api.serializers import (
    PurchaseDeleteSerializer,
    PurchaseSerializer,
    PurchaseWriteSerializer,
    SupplierPaymentSerializer,
    SupplierPaymentWriteSerializer,
    SupplierSerializer,
)
from purchases.models import Purchase, Supplier, SupplierPayment
from purchases.services.payment_service import (
    SupplierPaymentError,
    delete_supplier_payment,
    pay_supplier,
    update_supplier_payment,
)
from purchases.services.purchase_service import (
    PurchaseError,
    PurchaseNotFound,
    create_purchase,
    delete_purchase,
    update_purchase,
)
from purchases.services.supplier_service import SupplierError, create_supplier, update_supplier
from sales.serializers import DateWindowSerializer
from store.services.concurrency import ConcurrentUpdateError

logger = logging.getLogger("purchases")

WINDOW_PARAMETERS = [
    OpenApiParameter(name="date_from", type=str, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="date_to", type=str, location=OpenApiParameter.QUERY, required=False),
]


def _error_response(exc) -> Response:
    if isinstance(exc, (PurchaseNotFound, CounterpartyNotFound)):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ConcurrentUpdateError):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, DjangoValidationError):
        return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _purchase_qs():
    return Purchase.objects.select_related("supplier").prefetch_related("items")


# -------------------------------------------------
# Suppliers
# -------------------------------------------------


class SupplierListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchases"], responses=SupplierSerializer(many=True))
    def get(self, request):
        qs = Supplier.objects.all().order_by("name")
        if request.query_params.get("include_inactive") != "true":
            qs = qs.filter(is_active=True)
        return Response(SupplierSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"], request=SupplierSerializer, responses={201: SupplierSerializer})
    def post(self, request):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        data.pop("expected_version", None)

        try:
            supplier = create_supplier(data=data)
        except (SupplierError, DjangoValidationError) as exc:
            return _error_response(exc)

        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)


class SupplierDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchases"], responses=SupplierSerializer)
    def get(self, request, supplier_id):
        supplier = Supplier.objects.filter(pk=supplier_id).first()
        if supplier is None:
            return Response({"detail": "Supplier not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"], request=SupplierSerializer, responses=SupplierSerializer)
    def patch(self, request, supplier_id):
        supplier = Supplier.objects.filter(pk=supplier_id).first()
        if supplier is None:
            return Response({"detail": "Supplier not found"}, status=status.HTTP_404_NOT_FOUND)

        s = SupplierSerializer(supplier, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        expected_version = data.pop("expected_version", None)

        try:
            supplier = update_supplier(
                supplier_id=supplier.pk, data=data, expected_version=expected_version
            )
        except (SupplierError, ConcurrentUpdateError, DjangoValidationError) as exc:
            return _error_response(exc)

        return Response(SupplierSerializer(supplier).data, status=status.HTTP_200_OK)


class SupplierLedgerView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"], parameters=WINDOW_PARAMETERS)
    def get(self, request, supplier_id):
        window = DateWindowSerializer(data=request.query_params)
        window.is_valid(raise_exception=True)

        try:
            supplier, statement = supplier_ledger(supplier_id=supplier_id, **window.validated_data)
        except (CounterpartyNotFound, LedgerWindowError) as exc:
            return _error_response(exc)

        return Response(
            {"supplier": SupplierSerializer(supplier).data, **statement.as_dict(kind=SUPPLIER)},
            status=status.HTTP_200_OK,
        )


class SupplierSummaryView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"], parameters=WINDOW_PARAMETERS)
    def get(self, request):
        window = DateWindowSerializer(data=request.query_params)
        window.is_valid(raise_exception=True)
        return Response(
            counterparty_summary(kind=SUPPLIER, **window.validated_data), status=status.HTTP_200_OK
        )


# -------------------------------------------------
# Purchases
# -------------------------------------------------


class PurchaseListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseWriteSerializer

    @extend_schema(
        tags=["purchases"],
        parameters=[
            OpenApiParameter(name="supplier", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses=PurchaseSerializer(many=True),
    )
    def get(self, request):
        qs = _purchase_qs().order_by("-invoice_date", "-created_at")
        supplier_id = (request.query_params.get("supplier") or "").strip()
        if supplier_id:
            qs = qs.filter(supplier_id=supplier_id)
        return Response(PurchaseSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"], request=PurchaseWriteSerializer, responses={201: PurchaseSerializer})
    def post(self, request):
        s = PurchaseWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = create_purchase(data=dict(s.validated_data), user=request.user)
        except (PurchaseError, ProductServiceError, ConcurrentUpdateError, DjangoValidationError) as exc:
            return _error_response(exc)
        except Exception:
            logger.exception("Unexpected failure recording purchase")
            raise

        purchase = _purchase_qs().get(pk=result.purchase.pk)
        return Response(
            {
                "purchase": PurchaseSerializer(purchase).data,
                "stock_adjustments": result.adjustments_as_dicts(),
            },
            status=status.HTTP_201_CREATED,
        )


class PurchaseDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseWriteSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseSerializer)
    def get(self, request, purchase_id):
        purchase = _purchase_qs().filter(pk=purchase_id).first()
        if purchase is None:
            return Response({"detail": "Purchase not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(PurchaseSerializer(purchase).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"], request=PurchaseWriteSerializer, responses=PurchaseSerializer)
    def put(self, request, purchase_id):
        s = PurchaseWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = update_purchase(
                purchase_id=purchase_id, data=dict(s.validated_data), user=request.user
            )
        except (PurchaseError, ProductServiceError, ConcurrentUpdateError, DjangoValidationError) as exc:
            return _error_response(exc)
        except Exception:
            logger.exception("Unexpected failure editing purchase", extra={"purchase_id": str(purchase_id)})
            raise

        purchase = _purchase_qs().get(pk=result.purchase.pk)
        return Response(
            {
                "purchase": PurchaseSerializer(purchase).data,
                "stock_adjustments": result.adjustments_as_dicts(),
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["purchases"],
        parameters=[
            OpenApiParameter(name="confirm", type=bool, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def delete(self, request, purchase_id):
        s = PurchaseDeleteSerializer(data={"confirm": request.query_params.get("confirm", False)})
        s.is_valid(raise_exception=True)

        try:
            invoice_number = delete_purchase(
                purchase_id=purchase_id, confirm=s.validated_data["confirm"]
            )
        except (PurchaseError, ConcurrentUpdateError) as exc:
            return _error_response(exc)

        return Response(
            {"invoice_number": invoice_number, "stock_reverted": False},
            status=status.HTTP_200_OK,
        )


# -------------------------------------------------
# Supplier payments
# -------------------------------------------------


class SupplierPaymentListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierPaymentWriteSerializer

    @extend_schema(tags=["purchases"], responses=SupplierPaymentSerializer(many=True))
    def get(self, request):
        qs = SupplierPayment.objects.select_related("supplier").order_by("-date", "-created_at")
        supplier_id = (request.query_params.get("supplier") or "").strip()
        if supplier_id:
            qs = qs.filter(supplier_id=supplier_id)
        return Response(SupplierPaymentSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"], request=SupplierPaymentWriteSerializer)
    def post(self, request):
        s = SupplierPaymentWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            payment = pay_supplier(**s.validated_data)
        except (SupplierPaymentError, ConcurrentUpdateError, DjangoValidationError) as exc:
            return _error_response(exc)

        return Response(SupplierPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class SupplierPaymentDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierPaymentWriteSerializer

    def _get(self, payment_id):
        return SupplierPayment.objects.select_related("supplier").filter(pk=payment_id).first()

    @extend_schema(tags=["purchases"], responses=SupplierPaymentSerializer)
    def get(self, request, payment_id):
        payment = self._get(payment_id)
        if payment is None:
            return Response({"detail": "Payment not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(SupplierPaymentSerializer(payment).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"], request=SupplierPaymentWriteSerializer)
    def patch(self, request, payment_id):
        if self._get(payment_id) is None:
            return Response({"detail": "Payment not found"}, status=status.HTTP_404_NOT_FOUND)

        s = SupplierPaymentWriteSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        try:
            payment = update_supplier_payment(payment_id=payment_id, data=dict(s.validated_data))
        except (SupplierPaymentError, ConcurrentUpdateError, DjangoValidationError) as exc:
            return _error_response(exc)

        return Response(SupplierPaymentSerializer(payment).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["purchases"])
    def delete(self, request, payment_id):
        if self._get(payment_id) is None:
            return Response({"detail": "Payment not found"}, status=status.HTTP_404_NOT_FOUND)

        try:
            delete_supplier_payment(payment_id=payment_id)
        except (SupplierPaymentError, ConcurrentUpdateError) as exc:
            return _error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)

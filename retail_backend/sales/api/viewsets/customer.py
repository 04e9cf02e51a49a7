# sales/api/viewsets/customer.py

"""
CUSTOMER + SALESMAN ENDPOINTS

- Customers are never hard-deleted (receipts protect them); set is_active=false
- balance is read only; editing opening_balance moves it by the difference
- GET /customers/<id>/ledger/?date_from=&date_to=  (date_to defaults to today)
- GET /customers/summary/?date_from=&date_to=
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.services.exceptions import CounterpartyNotFound, LedgerWindowError
from accounting.services.ledger import CUSTOMER, counterparty_summary, customer_ledger
from sales.models import Customer, Salesman
from sales.serializers import CustomerSerializer, DateWindowSerializer, SalesmanSerializer
from sales.services.customers import create_customer, update_customer
from sales.services.exceptions import CustomerError
from store.services.concurrency import ConcurrentUpdateError

WINDOW_PARAMETERS = [
    OpenApiParameter(name="date_from", type=str, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="date_to", type=str, location=OpenApiParameter.QUERY, required=False),
]


@extend_schema(tags=["sales"])
class CustomerViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["is_active"]

    def get_queryset(self):
        qs = Customer.objects.all()
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(name__icontains=q)
        return qs.order_by("name")

    def create(self, request, *args, **kwargs):
        s = CustomerSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        data.pop("expected_version", None)
        try:
            customer = create_customer(data=data)
        except DjangoValidationError as exc:
            return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        customer = self.get_object()
        s = CustomerSerializer(customer, data=request.data, partial=partial)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        expected_version = data.pop("expected_version", None)

        try:
            customer = update_customer(
                customer_id=customer.pk, data=data, expected_version=expected_version
            )
        except (CustomerError, DjangoValidationError) as exc:
            detail = exc.messages if isinstance(exc, DjangoValidationError) else str(exc)
            return Response({"detail": detail}, status=status.HTTP_400_BAD_REQUEST)
        except ConcurrentUpdateError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(CustomerSerializer(customer).data, status=status.HTTP_200_OK)

    @extend_schema(parameters=WINDOW_PARAMETERS)
    @action(detail=True, methods=["get"], url_path="ledger")
    def ledger(self, request, pk=None):
        window = DateWindowSerializer(data=request.query_params)
        window.is_valid(raise_exception=True)

        try:
            customer, statement = customer_ledger(customer_id=pk, **window.validated_data)
        except CounterpartyNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except LedgerWindowError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "customer": CustomerSerializer(customer).data,
                **statement.as_dict(kind=CUSTOMER),
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(parameters=WINDOW_PARAMETERS)
    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        window = DateWindowSerializer(data=request.query_params)
        window.is_valid(raise_exception=True)
        rows = counterparty_summary(kind=CUSTOMER, **window.validated_data)
        return Response(rows, status=status.HTTP_200_OK)


@extend_schema(tags=["sales"])
class SalesmanViewSet(viewsets.ModelViewSet):
    serializer_class = SalesmanSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["is_active"]

    def get_queryset(self):
        return Salesman.objects.order_by("name")

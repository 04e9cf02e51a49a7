# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Product management endpoints (CRUD through the catalog service)
- First batch is created together with the product
- Batches listed / added per product
- Bulk import of batch-less products
- Deletion is refused while bills or purchases reference the product
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import Product
from products.serializers import (
    BatchCreateSerializer,
    BatchSerializer,
    BulkProductImportSerializer,
    ProductCreateSerializer,
    ProductSerializer,
)
from products.services.catalog import (
    add_batch,
    add_product_with_batch,
    bulk_import_products,
    delete_product,
    update_product,
)
from products.services.exceptions import ProductServiceError


def _bad_request(exc) -> Response:
    if isinstance(exc, DjangoValidationError):
        return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(tags=["products"])
class ProductViewSet(viewsets.ModelViewSet):
    """
    Product endpoints.

    - GET    /products/products/?q=<search>&company=<name>
    - POST   /products/products/                 (product + first_batch)
    - PATCH  /products/products/<id>/
    - DELETE /products/products/<id>/            (refused while referenced)
    - GET    /products/products/<id>/batches/
    - POST   /products/products/<id>/batches/
    - POST   /products/products/bulk-import/
    """

    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = (
            Product.objects.select_related("company")
            .prefetch_related("batches")
            .annotate(stock_total=Coalesce(Sum("batches__stock"), 0))
        )

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(name__icontains=q) | Q(barcode__iexact=q) | Q(composition__icontains=q)
            )

        company = (self.request.query_params.get("company") or "").strip()
        if company:
            qs = qs.filter(company__name__iexact=company)

        return qs.order_by("name")

    def get_serializer_class(self):
        if self.action == "create":
            return ProductCreateSerializer
        return ProductSerializer

    @extend_schema(
        parameters=[
            OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="company", type=str, location=OpenApiParameter.QUERY, required=False),
        ]
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        s = ProductCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        batch_data = data.pop("first_batch")

        try:
            product = add_product_with_batch(
                product_data=data, batch_data=batch_data, user=request.user
            )
        except (ProductServiceError, DjangoValidationError) as exc:
            return _bad_request(exc)

        product = self.get_queryset().get(pk=product.pk)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        product = self.get_object()
        s = ProductSerializer(product, data=request.data, partial=partial)
        s.is_valid(raise_exception=True)

        try:
            update_product(product=product, data=dict(s.validated_data))
        except (ProductServiceError, DjangoValidationError) as exc:
            return _bad_request(exc)

        product = self.get_queryset().get(pk=product.pk)
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        try:
            delete_product(product=product)
        except ProductServiceError as exc:
            return _bad_request(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=BatchCreateSerializer, responses=BatchSerializer(many=True))
    @action(detail=True, methods=["get", "post"], url_path="batches")
    def batches(self, request, pk=None):
        product = self.get_object()

        if request.method == "GET":
            data = BatchSerializer(product.batches.all(), many=True).data
            return Response(data, status=status.HTTP_200_OK)

        s = BatchCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            batch = add_batch(product=product, batch_data=dict(s.validated_data), user=request.user)
        except (ProductServiceError, DjangoValidationError) as exc:
            return _bad_request(exc)

        return Response(BatchSerializer(batch).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=BulkProductImportSerializer)
    @action(detail=False, methods=["post"], url_path="bulk-import")
    def bulk_import(self, request):
        s = BulkProductImportSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            result = bulk_import_products(rows=[dict(r) for r in s.validated_data["products"]])
        except (ProductServiceError, DjangoValidationError) as exc:
            return _bad_request(exc)
        return Response(result, status=status.HTTP_201_CREATED)

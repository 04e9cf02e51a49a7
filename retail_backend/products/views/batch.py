# products/views/batch.py

"""
BATCH + STOCK MOVEMENT ENDPOINTS

- Batches are read here; they are created with a product, via
  /products/<id>/batches/ or by purchases
- DELETE is refused while any bill or purchase line uses the batch
- POST /batches/<id>/adjust/ applies a manual stock correction
- Stock movements are a read-only audit trail
"""

from datetime import timedelta

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import Batch, StockMovement
from products.serializers import BatchSerializer, StockAdjustSerializer, StockMovementSerializer
from products.services.catalog import delete_batch
from products.services.exceptions import ProductServiceError
from products.services.stock import adjust_batch_stock
from store.services.concurrency import ConcurrentUpdateError


@extend_schema(tags=["products"])
class BatchViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = BatchSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["product"]

    def get_queryset(self):
        qs = Batch.objects.select_related("product")

        raw_days = (self.request.query_params.get("expiring_within_days") or "").strip()
        if raw_days.isdigit():
            cutoff = timezone.localdate() + timedelta(days=int(raw_days))
            qs = qs.filter(expiry_date__lte=cutoff, stock__gt=0)

        return qs.order_by("expiry_date", "created_at")

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="expiring_within_days",
                type=int,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Only batches with stock expiring within N days.",
            ),
        ]
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        batch = self.get_object()
        try:
            delete_batch(batch=batch)
        except ProductServiceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=StockAdjustSerializer, responses=BatchSerializer)
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        batch = self.get_object()
        s = StockAdjustSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = adjust_batch_stock(
                batch=batch,
                quantity_delta=s.validated_data["quantity_delta"],
                user=request.user,
                note=s.validated_data.get("note", ""),
            )
        except ProductServiceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except ConcurrentUpdateError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        batch.refresh_from_db()
        return Response(
            {"batch": BatchSerializer(batch).data, "adjustment": result.as_dict()},
            status=status.HTTP_200_OK,
        )


@extend_schema(tags=["products"])
class StockMovementViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["product", "batch", "reason", "movement_type", "bill", "purchase"]

    def get_queryset(self):
        return StockMovement.objects.select_related(
            "product", "batch", "bill", "purchase"
        ).order_by("-created_at")

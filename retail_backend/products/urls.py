# products/urls.py

"""
PRODUCTS URLS

Register product domain routes under /api/products/:
    companies/  gst-rates/  products/  batches/  stock-movements/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import (
    BatchViewSet,
    CompanyViewSet,
    GstRateViewSet,
    ProductViewSet,
    StockMovementViewSet,
)

router = DefaultRouter()

router.register(r"companies", CompanyViewSet, basename="companies")
router.register(r"gst-rates", GstRateViewSet, basename="gst-rates")
router.register(r"products", ProductViewSet, basename="products")
router.register(r"batches", BatchViewSet, basename="batches")
router.register(r"stock-movements", StockMovementViewSet, basename="stock-movements")

urlpatterns = [
    path("", include(router.urls)),
]

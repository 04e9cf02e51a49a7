# backend/urls.py
"""
PROJECT URLS

Everything the counter app talks to is mounted under /api/:

    /api/                 index of modules (public)
    /api/health/          liveness + database check (public)
    /api/auth/jwt/...     SimpleJWT token pair
    /api/schema/ /docs/   OpenAPI document + Swagger UI
    /api/products/ sales/ purchases/ accounting/ store/

The Django admin is mounted at settings.ADMIN_PATH.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import DatabaseError, connection
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

MODULES = {
    "products": {
        "products": "/api/products/products/",
        "batches": "/api/products/batches/",
        "companies": "/api/products/companies/",
        "gst_rates": "/api/products/gst-rates/",
        "stock_movements": "/api/products/stock-movements/",
    },
    "sales": {
        "bills": "/api/sales/bills/",
        "customers": "/api/sales/customers/",
        "salesmen": "/api/sales/salesmen/",
        "customer_payments": "/api/sales/customer-payments/",
        "reports": "/api/sales/reports/summary/",
    },
    "purchases": {
        "purchases": "/api/purchases/purchases/",
        "suppliers": "/api/purchases/suppliers/",
        "supplier_payments": "/api/purchases/payments/",
    },
    "accounting": {"reconcile": "/api/accounting/reconcile/"},
    "store": {
        "profile": "/api/store/profile/",
        "config": "/api/store/config/",
        "backup": "/api/store/backup/",
    },
}


@extend_schema(tags=["meta"], responses={200: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def api_index(request):
    return Response(
        {
            "name": settings.SPECTACULAR_SETTINGS["TITLE"],
            "version": settings.SPECTACULAR_SETTINGS["VERSION"],
            "auth": {
                "token": "/api/auth/jwt/create/",
                "refresh": "/api/auth/jwt/refresh/",
            },
            "docs": "/api/docs/",
            "modules": MODULES,
        }
    )


@extend_schema(tags=["meta"], responses={200: dict, 503: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def health(request):
    """Answers 503 when the default database cannot run a trivial query."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        return Response(
            {"status": "degraded", "db": "down"},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({"status": "ok", "db": "ok"})


def _admin_path() -> str:
    value = getattr(settings, "ADMIN_PATH", "admin/") or "admin/"
    return value if value.endswith("/") else f"{value}/"


api_urlpatterns = [
    path("", api_index, name="api-index"),
    path("health/", health, name="health"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("products/", include("products.urls")),
    path("sales/", include("sales.api.urls")),
    path("purchases/", include("purchases.api.urls")),
    path("accounting/", include("accounting.api.urls")),
    path("store/", include("store.urls")),
]

urlpatterns = [
    path(_admin_path(), admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]

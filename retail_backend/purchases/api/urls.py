# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PurchaseDetailView,
    PurchaseListCreateView,
    SupplierDetailView,
    SupplierLedgerView,
    SupplierListCreateView,
    SupplierPaymentDetailView,
    SupplierPaymentListCreateView,
    SupplierSummaryView,
)

urlpatterns = [
    path("suppliers/", SupplierListCreateView.as_view(), name="purchase-suppliers"),
    path("suppliers/summary/", SupplierSummaryView.as_view(), name="purchase-suppliers-summary"),
    path("suppliers/<uuid:supplier_id>/", SupplierDetailView.as_view(), name="purchase-supplier-detail"),
    path(
        "suppliers/<uuid:supplier_id>/ledger/",
        SupplierLedgerView.as_view(),
        name="purchase-supplier-ledger",
    ),
    path("purchases/", PurchaseListCreateView.as_view(), name="purchases"),
    path("purchases/<uuid:purchase_id>/", PurchaseDetailView.as_view(), name="purchase-detail"),
    path("payments/", SupplierPaymentListCreateView.as_view(), name="supplier-payments"),
    path(
        "payments/<uuid:payment_id>/",
        SupplierPaymentDetailView.as_view(),
        name="supplier-payment-detail",
    ),
]

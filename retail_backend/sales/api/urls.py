# sales/api/urls.py

"""
SALES API URLS

Explicit report routes are registered BEFORE the router so they are not
read as a <pk>.

    /api/sales/customers/          (+ <id>/ledger/, summary/)
    /api/sales/salesmen/
    /api/sales/bills/              (+ <id>/details/)
    /api/sales/customer-payments/
    /api/sales/reports/summary|company-profit|salesmen|gst/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.reports import (
    CompanyProfitReportView,
    GstSalesReportView,
    SalesmanReportView,
    SalesSummaryReportView,
)
from sales.api.viewsets.bill import BillViewSet
from sales.api.viewsets.customer import CustomerViewSet, SalesmanViewSet
from sales.api.viewsets.payment import CustomerPaymentViewSet

router = DefaultRouter()
router.register(r"customers", CustomerViewSet, basename="customers")
router.register(r"salesmen", SalesmanViewSet, basename="salesmen")
router.register(r"bills", BillViewSet, basename="bills")
router.register(r"customer-payments", CustomerPaymentViewSet, basename="customer-payments")

urlpatterns = [
    path("reports/summary/", SalesSummaryReportView.as_view(), name="sales-reports-summary"),
    path("reports/company-profit/", CompanyProfitReportView.as_view(), name="sales-reports-company-profit"),
    path("reports/salesmen/", SalesmanReportView.as_view(), name="sales-reports-salesmen"),
    path("reports/gst/", GstSalesReportView.as_view(), name="sales-reports-gst"),
    path("", include(router.urls)),
]

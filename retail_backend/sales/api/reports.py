# sales/api/reports.py

"""
SALES REPORTS

GET /api/sales/reports/summary/?date_from=&date_to=
GET /api/sales/reports/company-profit/?company=<name>&date_from=&date_to=
GET /api/sales/reports/salesmen/?date_from=&date_to=
GET /api/sales/reports/gst/?date_from=&date_to=

date_to defaults to today; date_from is open-ended when omitted.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sales.serializers import DateWindowSerializer
from sales.services.reports import (
    company_bill_profit,
    gst_wise_sales,
    sales_summary,
    salesman_summary,
)

WINDOW_PARAMETERS = [
    OpenApiParameter(name="date_from", type=str, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="date_to", type=str, location=OpenApiParameter.QUERY, required=False),
]


def _window(request) -> dict:
    s = DateWindowSerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    return s.validated_data


class SalesSummaryReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"], parameters=WINDOW_PARAMETERS)
    def get(self, request):
        return Response(sales_summary(**_window(request)), status=status.HTTP_200_OK)


class CompanyProfitReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["reports"],
        parameters=[
            OpenApiParameter(name="company", type=str, location=OpenApiParameter.QUERY, required=True),
            *WINDOW_PARAMETERS,
        ],
    )
    def get(self, request):
        company = (request.query_params.get("company") or "").strip()
        if not company:
            return Response({"detail": "company is required"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(
            company_bill_profit(company=company, **_window(request)), status=status.HTTP_200_OK
        )


class SalesmanReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"], parameters=WINDOW_PARAMETERS)
    def get(self, request):
        return Response(salesman_summary(**_window(request)), status=status.HTTP_200_OK)


class GstSalesReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"], parameters=WINDOW_PARAMETERS)
    def get(self, request):
        return Response(gst_wise_sales(**_window(request)), status=status.HTTP_200_OK)

"""
PATH: accounting/api/views/reconcile.py

BALANCE RECONCILIATION API

- GET  : recompute every customer / supplier balance from its ledger and
         list the rows whose stored balance drifted (read only)
- POST : same scan, rewriting drifted balances (staff only)
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.services.reconciliation import find_balance_drift
from store.services.concurrency import ConcurrentUpdateError


def _payload(drifts, *, repaired: bool) -> dict:
    return {
        "drift_count": len(drifts),
        "repaired": repaired,
        "drifts": [d.as_dict() for d in drifts],
    }


@extend_schema(tags=["accounting"], responses={200: dict})
class BalanceReconcileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        drifts = find_balance_drift(repair=False)
        return Response(_payload(drifts, repaired=False), status=status.HTTP_200_OK)

    def post(self, request):
        if not request.user.is_staff:
            return Response(
                {"detail": "You do not have permission to repair balances."},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            drifts = find_balance_drift(repair=True)
        except ConcurrentUpdateError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(_payload(drifts, repaired=True), status=status.HTTP_200_OK)

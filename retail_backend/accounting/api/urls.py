# accounting/api/urls.py

from django.urls import path

from accounting.api.views.reconcile import BalanceReconcileView

urlpatterns = [
    path("reconcile/", BalanceReconcileView.as_view(), name="balance-reconcile"),
]

# accounting/api/views/__init__.py

from .reconcile import BalanceReconcileView

__all__ = ["BalanceReconcileView"]

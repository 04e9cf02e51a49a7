# sales/services/exceptions.py

"""
SALES SERVICE ERRORS
"""


class SalesServiceError(Exception):
    """Base exception for billing, customer and receipt failures."""


class BillingError(SalesServiceError):
    """Raised when a bill cannot be created, edited or deleted."""


class BillNotFound(BillingError):
    pass


class EmptyBillError(BillingError):
    pass


class PaymentError(SalesServiceError):
    """Raised for invalid customer receipts."""


class CustomerError(SalesServiceError):
    pass

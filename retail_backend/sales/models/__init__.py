# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS
"""

from .bill import Bill, BillItem
from .customer import Customer
from .customer_payment import CustomerPayment
from .salesman import Salesman

__all__ = [
    "Bill",
    "BillItem",
    "Customer",
    "CustomerPayment",
    "Salesman",
]

# sales/serializers/__init__.py

from .bill import (
    BillDetailsSerializer,
    BillItemSerializer,
    BillLineInputSerializer,
    BillSerializer,
    BillWriteSerializer,
)
from .customer import CustomerSerializer, SalesmanSerializer
from .payment import CustomerPaymentSerializer, CustomerPaymentWriteSerializer
from .reports import DateWindowSerializer

__all__ = [
    "BillDetailsSerializer",
    "BillItemSerializer",
    "BillLineInputSerializer",
    "BillSerializer",
    "BillWriteSerializer",
    "CustomerPaymentSerializer",
    "CustomerPaymentWriteSerializer",
    "CustomerSerializer",
    "DateWindowSerializer",
    "SalesmanSerializer",
]

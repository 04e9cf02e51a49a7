# store/serializers/__init__.py

from .settings import CompanyProfileSerializer, SystemConfigSerializer

__all__ = [
    "CompanyProfileSerializer",
    "SystemConfigSerializer",
]

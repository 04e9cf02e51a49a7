from .company_profile import CompanyProfile
from .system_config import SystemConfig

__all__ = [
    "CompanyProfile",
    "SystemConfig",
]

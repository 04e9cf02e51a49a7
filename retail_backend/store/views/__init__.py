from .store import BackupExportView, CompanyProfileView, SystemConfigView

__all__ = [
    "BackupExportView",
    "CompanyProfileView",
    "SystemConfigView",
]

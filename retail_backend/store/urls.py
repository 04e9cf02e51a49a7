# store/urls.py

from django.urls import path

from store.views import BackupExportView, CompanyProfileView, SystemConfigView

urlpatterns = [
    path("profile/", CompanyProfileView.as_view(), name="store-profile"),
    path("config/", SystemConfigView.as_view(), name="store-config"),
    path("backup/", BackupExportView.as_view(), name="store-backup"),
]

# store/views/store.py

"""
SHOP SETTINGS + BACKUP

- GET/PATCH /api/store/profile/   company letterhead (singleton)
- GET/PATCH /api/store/config/    software mode, invoice format, remarks
- GET       /api/store/backup/    full JSON export (backup_<YYYY-MM-DD>.json)

Settings writes are staff only; reads are open to any signed-in user.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from store.models import CompanyProfile, SystemConfig
from store.serializers import CompanyProfileSerializer, SystemConfigSerializer
from store.services.backup import backup_filename, build_backup


def _forbidden() -> Response:
    return Response(
        {"detail": "Only staff can change shop settings."}, status=status.HTTP_403_FORBIDDEN
    )


class CompanyProfileView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["store"], responses=CompanyProfileSerializer)
    def get(self, request):
        return Response(CompanyProfileSerializer(CompanyProfile.load()).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["store"], request=CompanyProfileSerializer, responses=CompanyProfileSerializer)
    def patch(self, request):
        if not request.user.is_staff:
            return _forbidden()
        s = CompanyProfileSerializer(CompanyProfile.load(), data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        s.save()
        return Response(s.data, status=status.HTTP_200_OK)


class SystemConfigView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["store"], responses=SystemConfigSerializer)
    def get(self, request):
        return Response(SystemConfigSerializer(SystemConfig.load()).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["store"], request=SystemConfigSerializer, responses=SystemConfigSerializer)
    def patch(self, request):
        if not request.user.is_staff:
            return _forbidden()
        s = SystemConfigSerializer(SystemConfig.load(), data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        s.save()
        return Response(s.data, status=status.HTTP_200_OK)


class BackupExportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["store"], responses={200: dict})
    def get(self, request):
        response = Response(build_backup(user=request.user), status=status.HTTP_200_OK)
        response["Content-Disposition"] = f'attachment; filename="{backup_filename()}"'
        return response

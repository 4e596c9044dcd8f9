"""Admin endpoints for the parameter registry and the permission matrix."""
import logging

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema

from app.core.services.audit import client_context
from app.platform.rbac.permissions import IsAdminRole
from app.utils.pagination import parse_page_params, paginate
from app.utils.response import api_response

from .models import ProjectParameter
from .serializers import (
    FieldPermissionBatchSerializer,
    FieldPermissionSerializer,
    ParameterWriteSerializer,
    ProjectParameterSerializer,
)
from .services import FieldPermissionTable, ParameterRegistry

logger = logging.getLogger(__name__)


class AdminParameterViewSet(viewsets.ViewSet):
    """CRUD on project parameters (ADMIN only)."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    def get_registry(self):
        return ParameterRegistry()

    @extend_schema(tags=["Admin: Parameters"], summary="List parameters (paginated)")
    def list(self, request):
        page, limit = parse_page_params(request.query_params)
        qs = ProjectParameter.objects.all().order_by("order", "created_at")
        rows, pagination = paginate(qs, page, limit)
        return api_response(200, "success", {
            "results": ProjectParameterSerializer(rows, many=True).data,
            "pagination": pagination,
        })

    @extend_schema(tags=["Admin: Parameters"], summary="Create a parameter", request=ParameterWriteSerializer)
    def create(self, request):
        serializer = ParameterWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        parameter = self.get_registry().create_parameter(
            key=data.get("key"),
            label=data.get("label"),
            type=data.get("type"),
            options=data.get("options"),
            order=data.get("order"),
            actor=request.user,
            audit_context=client_context(request),
        )
        return api_response(201, "success", ProjectParameterSerializer(parameter).data)

    @extend_schema(tags=["Admin: Parameters"], summary="Retrieve a parameter")
    def retrieve(self, request, pk=None):
        parameter = self.get_registry().get_parameter(pk)
        return api_response(200, "success", ProjectParameterSerializer(parameter).data)

    @extend_schema(tags=["Admin: Parameters"], summary="Update a parameter", request=ParameterWriteSerializer)
    def partial_update(self, request, pk=None):
        serializer = ParameterWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        parameter = self.get_registry().update_parameter(
            pk,
            serializer.validated_data,
            actor=request.user,
            audit_context=client_context(request),
        )
        return api_response(200, "success", ProjectParameterSerializer(parameter).data)

    @extend_schema(tags=["Admin: Parameters"], summary="Delete a parameter")
    def destroy(self, request, pk=None):
        self.get_registry().delete_parameter(
            pk,
            actor=request.user,
            audit_context=client_context(request),
        )
        return api_response(200, "success", {"message": "Parameter deleted"})


class AdminPermissionViewSet(viewsets.ViewSet):
    """Role x parameter capability matrix (ADMIN only)."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    def get_table(self):
        return FieldPermissionTable()

    @extend_schema(tags=["Admin: Permissions"], summary="List stored field permissions")
    def list(self, request):
        rows = self.get_table().list_permissions()
        return api_response(200, "success", FieldPermissionSerializer(rows, many=True).data)

    @extend_schema(
        tags=["Admin: Permissions"],
        summary="Upsert a batch of field permissions",
        request=FieldPermissionBatchSerializer,
    )
    def bulk_update(self, request):
        serializer = FieldPermissionBatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        table = self.get_table()
        written = table.set_permissions(
            serializer.validated_data["permissions"],
            actor=request.user,
            audit_context=client_context(request),
        )
        return api_response(200, "success", {
            "written": written,
            "permissions": FieldPermissionSerializer(table.list_permissions(), many=True).data,
        })

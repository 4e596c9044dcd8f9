# app/workspace/projects/views.py
import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import OpenApiParameter, extend_schema

from app.core.services.audit import client_context
from app.platform.flac.serializers import ProjectParameterSerializer
from app.platform.rbac.permissions import HasWorkspaceRole, IsAdminRole
from app.platform.rbac.utils import can_see_confidential, get_role
from app.utils.exceptions import ValidationError
from app.utils.pagination import parse_page_params
from app.utils.response import api_response

from .serializers import ConfidentialNotesSerializer, ProjectWriteSerializer
from .services import DEFAULT_LIST_LIMIT, ProjectProjectionService

logger = logging.getLogger(__name__)

LIST_CONTROL_PARAMS = {"page", "limit", "search"}


def _body(request) -> dict:
    data = request.data
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    # form-encoded bodies arrive as a QueryDict
    return data.dict() if hasattr(data, "dict") else dict(data)


class ProjectViewSet(viewsets.ViewSet):
    """
    Projects as seen by the caller's role.
    """
    permission_classes = [IsAuthenticated, HasWorkspaceRole]

    def get_permissions(self):
        if getattr(self, "action", None) == "confidential":
            return [IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    def get_service(self):
        return ProjectProjectionService()

    @extend_schema(
        tags=["Projects"],
        summary="List projects (role projection)",
        parameters=[
            OpenApiParameter("page", int, required=False),
            OpenApiParameter("limit", int, required=False),
            OpenApiParameter("search", str, required=False, description="Substring of the project name"),
            OpenApiParameter("status", str, required=False),
        ],
    )
    def list(self, request):
        page, limit = parse_page_params(request.query_params, default_limit=DEFAULT_LIST_LIMIT)
        filters = {
            key: value
            for key, value in request.query_params.items()
            if key not in LIST_CONTROL_PARAMS
        }
        rows, pagination, visible = self.get_service().list_projects(
            get_role(request.user),
            filters=filters,
            search=request.query_params.get("search"),
            page=page,
            limit=limit,
        )
        return api_response(200, "success", {
            "results": rows,
            "pagination": pagination,
            "columns": ProjectParameterSerializer(visible, many=True).data,
        })

    @extend_schema(tags=["Projects"], summary="Retrieve a project")
    def retrieve(self, request, pk=None):
        data = self.get_service().get_project(
            get_role(request.user), pk, include_confidential=can_see_confidential(request.user)
        )
        return api_response(200, "success", data)

    @extend_schema(tags=["Projects"], summary="Create a project", request=ProjectWriteSerializer)
    def create(self, request):
        role = get_role(request.user)
        service = self.get_service()
        record = service.create_project(
            role, _body(request), actor=request.user, audit_context=client_context(request)
        )
        return api_response(201, "success", service.project(role, record, include_confidential=can_see_confidential(request.user)))

    @extend_schema(tags=["Projects"], summary="Update a project", request=ProjectWriteSerializer)
    def partial_update(self, request, pk=None):
        role = get_role(request.user)
        service = self.get_service()
        record = service.get_record(pk)
        record = service.apply_update(
            role, record, _body(request), actor=request.user, audit_context=client_context(request)
        )
        return api_response(200, "success", service.project(role, record, include_confidential=can_see_confidential(request.user)))

    @extend_schema(tags=["Projects"], summary="Read or replace confidential notes (admin)", request=ConfidentialNotesSerializer)
    @action(detail=True, methods=["get", "patch"], url_path="confidential")
    def confidential(self, request, pk=None):
        role = get_role(request.user)
        service = self.get_service()

        if request.method == "GET":
            notes = service.get_confidential_notes(role, pk)
            return api_response(200, "success", {"confidentialNotes": notes})

        serializer = ConfidentialNotesSerializer(data=_body(request))
        serializer.is_valid(raise_exception=True)
        record = service.update_confidential_notes(
            role,
            pk,
            serializer.validated_data["confidentialNotes"],
            actor=request.user,
            audit_context=client_context(request),
        )
        return api_response(200, "success", {"confidentialNotes": record.confidential_notes or ""})


class ParameterViewSet(viewsets.ViewSet):
    """Parameters the caller's role may view, in display order."""

    permission_classes = [IsAuthenticated, HasWorkspaceRole]

    @extend_schema(tags=["Projects"], summary="List viewable project parameters")
    def list(self, request):
        parameters = ProjectProjectionService().viewable_parameters(get_role(request.user))
        return api_response(200, "success", ProjectParameterSerializer(parameters, many=True).data)

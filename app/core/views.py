import logging

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import OpenApiParameter, extend_schema

from app.platform.rbac.permissions import IsAdminRole
from app.utils.identifiers import parse_uuid
from app.utils.pagination import paginate, parse_page_params
from app.utils.response import api_response

from .models import AuditLog
from .serializers import AuditLogSerializer

logger = logging.getLogger(__name__)


class AuditLogViewSet(viewsets.ViewSet):
    """Read-only audit trail (ADMIN only)."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    @extend_schema(
        tags=["Audit"],
        summary="List audit entries, newest first",
        parameters=[
            OpenApiParameter("projectId", str, required=False, description="Entity id to filter on"),
            OpenApiParameter("entity", str, required=False, enum=[c.value for c in AuditLog.Entity]),
            OpenApiParameter("actorId", str, required=False),
            OpenApiParameter("page", int, required=False),
            OpenApiParameter("limit", int, required=False),
        ],
    )
    def list(self, request):
        params = request.query_params
        qs = AuditLog.objects.select_related("actor").order_by("-created_at")

        entity_id = (params.get("projectId") or params.get("entityId") or "").strip()
        if entity_id:
            qs = qs.filter(entity_id=entity_id)

        entity = (params.get("entity") or "").strip()
        if entity:
            qs = qs.filter(entity=entity)

        actor_id = (params.get("actorId") or "").strip()
        if actor_id:
            actor_pk = parse_uuid(actor_id)
            qs = qs.filter(actor_id=actor_pk) if actor_pk else qs.none()

        page, limit = parse_page_params(params)
        rows, pagination = paginate(qs, page, limit)
        return api_response(200, "success", {
            "results": AuditLogSerializer(rows, many=True).data,
            "pagination": pagination,
        })

# app/workspace/dashboard/views.py
import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema

from app.platform.rbac.permissions import HasWorkspaceRole
from app.platform.rbac.utils import get_role
from app.utils.response import api_response
from app.workspace.inbox.services import unread_count
from app.workspace.projects.services import ProjectProjectionService

logger = logging.getLogger(__name__)

RECENT_PROJECTS = 10


class DashboardViewSet(viewsets.ViewSet):
    """
    Dashboard: aggregated data endpoints
    """
    permission_classes = [IsAuthenticated, HasWorkspaceRole]

    @extend_schema(tags=["Dashboard"], summary="Get dashboard summary")
    @action(detail=False, methods=["get"])
    def summary(self, request):
        """
        Project counts per status, the most recently updated projects as
        the caller's role sees them, and the caller's unread notifications.
        """
        service = ProjectProjectionService()
        by_status = service.status_counts()
        recent, pagination, _ = service.list_projects(get_role(request.user), page=1, limit=RECENT_PROJECTS)

        return api_response(200, "success", {
            "projects": {
                "total": pagination["total"],
                "byStatus": by_status,
                "recent": recent,
            },
            "unreadNotifications": unread_count(request.user),
        })

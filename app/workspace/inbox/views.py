import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import OpenApiParameter, extend_schema

from app.core.services.audit import client_context
from app.utils.pagination import paginate, parse_page_params
from app.utils.response import api_response

from . import services
from .serializers import MessageCreateSerializer, MessageSerializer, NotificationSerializer

logger = logging.getLogger(__name__)


class MessageViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Inbox"],
        summary="List messages",
        parameters=[OpenApiParameter("priority", str, required=False, enum=["NORMAL", "IMPORTANT"])],
    )
    def list(self, request):
        page, limit = parse_page_params(request.query_params)
        qs = services.list_messages(request.query_params.get("priority"))
        rows, pagination = paginate(qs, page, limit)
        return api_response(200, "success", {
            "results": MessageSerializer(rows, many=True).data,
            "pagination": pagination,
        })

    @extend_schema(tags=["Inbox"], summary="Post a message to everyone", request=MessageCreateSerializer)
    def create(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = services.post_message(
            sender=request.user,
            audit_context=client_context(request),
            **serializer.validated_data,
        )
        return api_response(201, "success", MessageSerializer(message).data)

    @extend_schema(tags=["Inbox"], summary="Retrieve a message")
    def retrieve(self, request, pk=None):
        return api_response(200, "success", MessageSerializer(services.get_message(pk)).data)


class NotificationViewSet(viewsets.ViewSet):
    """The caller's own notifications."""

    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Inbox"], summary="List my notifications")
    def list(self, request):
        rows = services.notifications_for(request.user)
        return api_response(200, "success", {
            "results": NotificationSerializer(rows, many=True).data,
            "unread": services.unread_count(request.user),
        })

    @extend_schema(tags=["Inbox"], summary="Mark a notification as read", request=None)
    @action(detail=True, methods=["patch", "post"], url_path="read")
    def read(self, request, pk=None):
        notification = services.mark_read(request.user, pk)
        return api_response(200, "success", NotificationSerializer(notification).data)

"""
Schema view that reports generation failures in the standard envelope.
"""
import logging

from drf_spectacular.views import SpectacularAPIView
from rest_framework import status, permissions

from app.utils.response import api_response

logger = logging.getLogger(__name__)


class CustomSpectacularAPIView(SpectacularAPIView):
    """Public OpenAPI schema endpoint."""

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        try:
            return super().get(request, *args, **kwargs)
        except Exception as e:
            logger.exception(f"Error generating OpenAPI schema: {e}")
            return api_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                status="failure",
                data={},
                error_code="SCHEMA_GENERATION_ERROR",
                error_message="Failed to generate API schema. Check server logs for details.",
            )

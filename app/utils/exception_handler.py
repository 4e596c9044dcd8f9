import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework.views import exception_handler, set_rollback
from rest_framework.exceptions import (
    APIException,
    ValidationError,
    NotAuthenticated,
    AuthenticationFailed,
    PermissionDenied,
    NotFound as DRFNotFound,
)
from rest_framework import status

from app.utils.exceptions import ServiceError
from app.utils.response import api_response

logger = logging.getLogger(__name__)


def format_validation_error(error_detail):
    """
    Convert DRF ValidationError detail into a readable error message.

    Handles:
    - Dict format: {'email': [ErrorDetail(...)]} -> "Email: user with this email already exists."
    - List format: [ErrorDetail(...)] -> "user with this email already exists."
    - String format: "error message" -> "error message"
    """
    if isinstance(error_detail, dict):
        messages = []
        for field, errors in error_detail.items():
            if not isinstance(errors, (list, tuple)):
                errors = [errors]
            error_strings = [format_validation_error(error) for error in errors]
            field_name = field.replace('_', ' ').title()
            messages.append(f"{field_name}: {', '.join(error_strings)}")
        return ". ".join(messages)

    elif isinstance(error_detail, list):
        return ". ".join(format_validation_error(error) for error in error_detail)

    elif isinstance(error_detail, str):
        return str(error_detail)

    return str(error_detail)


def custom_exception_handler(exc, context):
    """
    Global exception handler for ProjectBoard.
    Ensures ALL API errors use the api_response() format.
    """
    view = context.get('view', None)
    view_name = view.__class__.__name__ if view else 'UnknownView'

    # --- Domain errors raised by the service layer ---
    if isinstance(exc, ServiceError):
        logger.info(f"[{view_name}] {exc.default_code}: {exc.detail}")
        set_rollback()
        return api_response(
            status_code=exc.status_code,
            status="failure",
            data={},
            error_code=exc.default_code,
            error_message=format_validation_error(exc.detail),
        )

    # Let DRF translate Django's Http404 / PermissionDenied first
    response = exception_handler(exc, context)

    # --- Handle Auth Errors ---
    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        logger.info(f"[{view_name}] Authentication failed: {exc}")
        return api_response(
            status_code=status.HTTP_401_UNAUTHORIZED,
            status="failure",
            data={},
            error_code="AUTH_ERROR",
            error_message="Authentication credentials were not provided or invalid."
        )

    # --- Handle Permission Denied ---
    if isinstance(exc, (PermissionDenied, DjangoPermissionDenied)):
        logger.info(f"[{view_name}] Permission denied: {exc}")
        return api_response(
            status_code=status.HTTP_403_FORBIDDEN,
            status="failure",
            data={},
            error_code="PERMISSION_DENIED",
            error_message="You do not have permission to perform this action."
        )

    # --- Handle Not Found ---
    if isinstance(exc, (Http404, DRFNotFound)):
        return api_response(
            status_code=status.HTTP_404_NOT_FOUND,
            status="failure",
            data={},
            error_code="NOT_FOUND",
            error_message="Not found.",
        )

    # --- Handle Validation Errors ---
    if isinstance(exc, ValidationError):
        error_message = format_validation_error(exc.detail)
        logger.info(f"[{view_name}] Validation error: {error_message}")
        return api_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            status="failure",
            data={},
            error_code="VALIDATION_ERROR",
            error_message=error_message
        )

    # --- Handle other DRF API Exceptions (ParseError, MethodNotAllowed, Throttled...) ---
    if isinstance(exc, APIException):
        logger.warning(f"[{view_name}] API exception: {exc}")
        return api_response(
            status_code=response.status_code if response is not None else exc.status_code,
            status="failure",
            data={},
            error_code="API_EXCEPTION",
            error_message=format_validation_error(exc.detail),
        )

    # --- Handle Unexpected Server Errors ---
    logger.exception(f"[{view_name}] Unhandled exception", exc_info=exc)
    return api_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        status="failure",
        data={},
        error_code="INTERNAL_SERVER_ERROR",
        error_message="An unexpected error occurred. Please try again later."
    )

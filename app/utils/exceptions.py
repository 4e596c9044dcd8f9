"""
Domain errors raised by the service layer.

They subclass DRF's APIException so views can simply let them propagate;
the global exception handler renders them with the standard envelope.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class ServiceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = "SERVICE_ERROR"


class ValidationError(ServiceError):
    """Missing or malformed required field."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "VALIDATION_ERROR"


class DuplicateKey(ServiceError):
    """A unique key (parameter key, user email) is already taken."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Key already in use."
    default_code = "DUPLICATE_KEY"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "NOT_FOUND"


class Forbidden(ServiceError):
    """Role lacks the capability for the requested operation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "PERMISSION_DENIED"

"""
DRF Permission Classes for RBAC
"""

from rest_framework import permissions

from .utils import get_role, is_admin


class HasWorkspaceRole(permissions.BasePermission):
    """
    Authenticated user carrying one of the known workspace roles.

    A user row with a corrupt role value is denied instead of being treated
    as the lowest role.
    """

    message = "Your account has no workspace role."

    def has_permission(self, request, view):
        return get_role(request.user) is not None


class IsAdminRole(permissions.BasePermission):
    """Check if user holds the ADMIN role."""

    message = "Admin access required."

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return is_admin(request.user)

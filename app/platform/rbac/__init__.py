"""
Role-Based Access Control (RBAC)
Three workspace roles; ADMIN bypasses every field-level restriction.
"""

from .constants import Roles, ROLE_CHOICES

__all__ = [
    "Roles",
    "ROLE_CHOICES",
]

# Policy helpers are imported from their modules:
#   from app.platform.rbac.utils import effective_permission, is_admin, get_role
#   from app.platform.rbac.permissions import IsAdminRole

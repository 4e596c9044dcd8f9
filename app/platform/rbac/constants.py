"""
RBAC Constants - Role definitions
"""

from enum import Enum


class Roles(str, Enum):
    """Workspace roles, highest privilege first."""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


ROLE_CHOICES = [(r.value, r.value.title()) for r in Roles]

DEFAULT_ROLE = Roles.STAFF

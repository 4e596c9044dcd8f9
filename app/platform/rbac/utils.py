"""
RBAC Utility Functions
Role lookup and the single place where the ADMIN override is applied.
"""

import logging
from typing import NamedTuple, Optional, Union

from .constants import Roles

logger = logging.getLogger(__name__)


class FieldCapabilities(NamedTuple):
    """Capability flags a role holds on one project parameter."""

    can_view: bool = False
    can_edit: bool = False
    can_update: bool = False

    @property
    def can_write(self) -> bool:
        # edit and update are both read as "may write" at the mutation boundary
        return self.can_edit or self.can_update


NO_ACCESS = FieldCapabilities()
FULL_ACCESS = FieldCapabilities(can_view=True, can_edit=True, can_update=True)


def normalize_role(value: Union[str, Roles, None]) -> Optional[Roles]:
    """Map a raw role string to ``Roles``; unknown values give ``None``."""
    if isinstance(value, Roles):
        return value
    if not value:
        return None
    try:
        return Roles(str(value).strip().upper())
    except ValueError:
        return None


def effective_permission(role, perm: Optional[FieldCapabilities]) -> FieldCapabilities:
    """
    Capabilities a role actually holds given its stored row (or ``None``).

    ADMIN always gets full access regardless of what is stored; everyone
    else gets exactly the stored flags, or nothing when no row exists.
    """
    if normalize_role(role) == Roles.ADMIN:
        return FULL_ACCESS
    if perm is None:
        return NO_ACCESS
    return FieldCapabilities(
        can_view=bool(perm.can_view),
        can_edit=bool(perm.can_edit),
        can_update=bool(perm.can_update),
    )


def get_role(user) -> Optional[Roles]:
    """Role of an authenticated user, ``None`` for anonymous users."""
    if not user or not getattr(user, "is_authenticated", False):
        return None
    return normalize_role(getattr(user, "role", None))


def is_admin(user) -> bool:
    return get_role(user) == Roles.ADMIN


def can_manage_users(user) -> bool:
    return is_admin(user)


def can_see_confidential(user) -> bool:
    """Confidential notes are gated separately from parameter permissions."""
    return is_admin(user)


def can_access_admin(user) -> bool:
    return is_admin(user)

"""
User administration and self-service account updates.

Every change is written to the audit trail; password values never are.
"""
import logging
from typing import Mapping

from django.db import IntegrityError, transaction

from app.core.models import AuditLog
from app.core.services.audit import as_json, record_audit
from app.platform.rbac.constants import DEFAULT_ROLE
from app.platform.rbac.utils import get_role, normalize_role
from app.utils.exceptions import DuplicateKey, Forbidden, NotFound, ValidationError
from app.utils.identifiers import parse_uuid
from app.workspace.projects.services import ProjectProjectionService

from .models import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
ADMIN_PASSWORD_MARKER = "[changed by admin]"
OWN_PASSWORD_MARKER = "[changed]"


def normalize_email(value) -> str:
    return str(value or "").strip().lower()


def _check_password(password):
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


def _check_email_free(email, exclude_pk=None):
    qs = User.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise DuplicateKey("A user with this email already exists.")


def get_user(user_id) -> User:
    pk = parse_uuid(user_id)
    user = User.objects.filter(pk=pk).first() if pk else None
    if user is None:
        raise NotFound("User not found.")
    return user


@transaction.atomic
def create_user(*, email, password, name=None, role=None, actor=None, audit_context=None) -> User:
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required.")
    _check_password(password)
    _check_email_free(email)

    resolved_role = normalize_role(role) or DEFAULT_ROLE
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                name=(name or "").strip() or None,
                role=resolved_role.value,
            )
    except IntegrityError:
        raise DuplicateKey("A user with this email already exists.")

    record_audit(
        actor=actor,
        entity=AuditLog.Entity.USER,
        action=AuditLog.Action.CREATE,
        entity_id=user.pk,
        new_value=as_json({"email": user.email, "role": user.role}),
        **(audit_context or {}),
    )
    logger.info(f"User created: {user.email} ({user.role})")
    return user


@transaction.atomic
def update_user(user_id, changes: Mapping, *, actor=None, audit_context=None) -> User:
    """Admin edit of email / name / role / password / active flag."""
    user = get_user(user_id)
    if not changes:
        raise ValidationError("No valid fields to update.")
    audit = []
    update_fields = []

    if changes.get("email") is not None and str(changes["email"]).strip():
        email = normalize_email(changes["email"])
        if email != user.email:
            _check_email_free(email, exclude_pk=user.pk)
            audit.append(("email", user.email, email))
            user.email = email
            update_fields.append("email")

    if "name" in changes and changes["name"] is not None:
        name = str(changes["name"]).strip() or None
        if name != user.name:
            audit.append(("name", user.name or "", name or ""))
            user.name = name
            update_fields.append("name")

    if changes.get("role") not in (None, ""):
        role = normalize_role(changes["role"])
        if role is None:
            raise ValidationError("Role must be one of ADMIN, MANAGER, STAFF.")
        if role.value != user.role:
            audit.append(("role", user.role, role.value))
            user.role = role.value
            update_fields.append("role")

    if changes.get("is_active") is not None and bool(changes["is_active"]) != user.is_active:
        if actor is not None and actor.pk == user.pk:
            raise ValidationError("You cannot deactivate your own account.")
        audit.append(("isActive", str(user.is_active).lower(), str(bool(changes["is_active"])).lower()))
        user.is_active = bool(changes["is_active"])
        update_fields.append("is_active")

    if changes.get("password"):
        _check_password(changes["password"])
        user.set_password(changes["password"])
        audit.append(("password", None, ADMIN_PASSWORD_MARKER))
        update_fields.append("password")

    if not update_fields:
        return user

    try:
        with transaction.atomic():
            user.save(update_fields=update_fields + ["updated_at"])
    except IntegrityError:
        raise DuplicateKey("A user with this email already exists.")

    for field, old, new in audit:
        record_audit(
            actor=actor,
            entity=AuditLog.Entity.USER,
            action=AuditLog.Action.UPDATE,
            entity_id=user.pk,
            field_name=field,
            old_value=old,
            new_value=new,
            **(audit_context or {}),
        )
    logger.info(f"User {user.pk} updated: {', '.join(a[0] for a in audit)}")
    return user


@transaction.atomic
def delete_user(user_id, *, actor=None, audit_context=None) -> None:
    user = get_user(user_id)
    if actor is not None and actor.pk == user.pk:
        raise ValidationError("You cannot delete your own account.")

    snapshot = {"email": user.email, "role": user.role}
    pk = user.pk
    user.delete()
    record_audit(
        actor=actor,
        entity=AuditLog.Entity.USER,
        action=AuditLog.Action.DELETE,
        entity_id=pk,
        old_value=as_json(snapshot),
        **(audit_context or {}),
    )
    logger.info(f"User deleted: {snapshot['email']}")


@transaction.atomic
def update_account(user: User, changes: Mapping, *, audit_context=None) -> User:
    """
    Self-service profile update.

    A new password needs the current one. ``dashboard_column_keys`` may only
    name parameters the user's role can view.
    """
    if not changes:
        raise ValidationError("No valid fields to update.")
    audit = []
    update_fields = []

    if changes.get("email") is not None and str(changes["email"]).strip():
        email = normalize_email(changes["email"])
        if email != user.email:
            _check_email_free(email, exclude_pk=user.pk)
            audit.append(("email", user.email, email))
            user.email = email
            update_fields.append("email")

    if "name" in changes and changes["name"] is not None:
        name = str(changes["name"]).strip() or None
        if name != user.name:
            audit.append(("name", user.name or "", name or ""))
            user.name = name
            update_fields.append("name")

    new_password = changes.get("new_password")
    if new_password:
        old_password = changes.get("old_password")
        if not old_password:
            raise ValidationError("Current password is required to set a new password.")
        if not user.check_password(old_password):
            raise ValidationError("Current password is incorrect.")
        _check_password(new_password)
        user.set_password(new_password)
        audit.append(("password", None, OWN_PASSWORD_MARKER))
        update_fields.append("password")

    keys = changes.get("dashboard_column_keys")
    if keys is not None:
        role = get_role(user)
        if role is None:
            raise Forbidden("Your account has no workspace role.")
        viewable = set(ProjectProjectionService().viewable_keys(role))
        if any(not isinstance(k, str) or k not in viewable for k in keys):
            raise ValidationError("dashboardColumnKeys contains keys you are not allowed to view.")
        keys = list(keys)
        if keys != list(user.dashboard_column_keys or []):
            audit.append(("dashboardColumnKeys", as_list_text(user.dashboard_column_keys), as_list_text(keys)))
            user.dashboard_column_keys = keys
            update_fields.append("dashboard_column_keys")

    if not update_fields:
        return user

    try:
        with transaction.atomic():
            user.save(update_fields=update_fields + ["updated_at"])
    except IntegrityError:
        raise DuplicateKey("A user with this email already exists.")

    for field, old, new in audit:
        record_audit(
            actor=user,
            entity=AuditLog.Entity.ACCOUNT,
            action=AuditLog.Action.UPDATE,
            entity_id=user.pk,
            field_name=field,
            old_value=old,
            new_value=new,
            **(audit_context or {}),
        )
    return user


def as_list_text(values) -> str:
    return ",".join(values or [])

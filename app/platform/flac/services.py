"""
Parameter Registry and Field Permission Table.

The registry owns the admin-defined extra project fields; the permission
table owns the per-role capability flags on them. Both invalidate the
injected permission cache on every write.
"""
import json
import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional

from django.db import IntegrityError, transaction

from app.core.models import AuditLog
from app.core.services.audit import as_json, record_audit
from app.platform.rbac.utils import (
    FieldCapabilities,
    effective_permission,
    normalize_role,
)
from app.utils.exceptions import DuplicateKey, NotFound, ValidationError
from app.utils.identifiers import parse_uuid

from .cache import get_permission_cache
from .models import FieldPermission, ProjectParameter

logger = logging.getLogger(__name__)

PARAMETER_TYPES = {choice.value for choice in ProjectParameter.FieldType}
OPTION_SPLIT_RE = re.compile(r"[,\n]")

# Keys that would collide with fixed project columns or list query params
RESERVED_KEYS = frozenset({
    "id", "name", "status", "createdAt", "updatedAt", "confidentialNotes",
    "page", "limit", "search",
})


def normalize_options(raw) -> Optional[str]:
    """Split on commas/newlines, trim, drop empties, re-join with ``,``."""
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        raw = ",".join(str(item) for item in raw)
    parts = [part.strip() for part in OPTION_SPLIT_RE.split(str(raw))]
    joined = ",".join(part for part in parts if part)
    return joined or None


KEY_MAX_LENGTH = ProjectParameter._meta.get_field("key").max_length
LABEL_MAX_LENGTH = ProjectParameter._meta.get_field("label").max_length


def _check_key(key: str) -> str:
    if key in RESERVED_KEYS:
        raise ValidationError(f"'{key}' is a reserved key.")
    # JSON key lookups read all-digit keys as array indexes
    if key.isdigit():
        raise ValidationError("Key cannot consist of digits only.")
    if len(key) > KEY_MAX_LENGTH:
        raise ValidationError(f"Key must be at most {KEY_MAX_LENGTH} characters.")
    return key


def _check_label(label: str) -> str:
    if len(label) > LABEL_MAX_LENGTH:
        raise ValidationError(f"Label must be at most {LABEL_MAX_LENGTH} characters.")
    return label


def invalidate_permissions(cache) -> None:
    """Clear now, and again once the surrounding transaction commits."""
    cache.clear()
    # lookups between the two clears may cache pre-commit rows
    transaction.on_commit(cache.clear)


def _clean_type(value) -> str:
    if value is None or str(value).strip() == "":
        return ProjectParameter.FieldType.TEXT
    value = str(value).strip().lower()
    if value not in PARAMETER_TYPES:
        raise ValidationError(f"Unknown parameter type '{value}'.")
    return value


def _clean_order(value) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError("Order must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Order must be an integer.")


def _snapshot(parameter: ProjectParameter) -> dict:
    return {
        "key": parameter.key,
        "label": parameter.label,
        "type": parameter.type,
        "options": parameter.options,
        "order": parameter.order,
    }


class ParameterRegistry:
    """CRUD over ``ProjectParameter`` with audit and cache invalidation."""

    def __init__(self, permission_cache=None):
        self.cache = permission_cache if permission_cache is not None else get_permission_cache()

    def list_parameters(self) -> List[ProjectParameter]:
        return list(ProjectParameter.objects.all().order_by("order", "created_at"))

    def get_parameter(self, parameter_id) -> ProjectParameter:
        pk = parse_uuid(parameter_id)
        parameter = ProjectParameter.objects.filter(pk=pk).first() if pk else None
        if parameter is None:
            raise NotFound("Parameter not found.")
        return parameter

    @transaction.atomic
    def create_parameter(self, *, key, label, type=None, options=None, order=None, actor=None, audit_context=None) -> ProjectParameter:
        key = (key or "").strip()
        label = (label or "").strip()
        if not key or not label:
            raise ValidationError("Key and label are required.")
        _check_key(key)
        _check_label(label)

        field_type = _clean_type(type)
        if ProjectParameter.objects.filter(key=key).exists():
            raise DuplicateKey(f"A parameter with key '{key}' already exists.")

        try:
            with transaction.atomic():
                parameter = ProjectParameter.objects.create(
                    key=key,
                    label=label,
                    type=field_type,
                    options=normalize_options(options) if field_type == ProjectParameter.FieldType.SELECT else None,
                    order=_clean_order(order),
                )
        except IntegrityError:
            raise DuplicateKey(f"A parameter with key '{key}' already exists.")

        record_audit(
            actor=actor,
            entity=AuditLog.Entity.PARAMETER,
            action=AuditLog.Action.CREATE,
            entity_id=parameter.id,
            new_value=as_json(_snapshot(parameter)),
            **(audit_context or {}),
        )
        invalidate_permissions(self.cache)
        logger.info(f"Parameter created: {parameter.key}")
        return parameter

    @transaction.atomic
    def update_parameter(self, parameter_id, patch: Mapping, *, actor=None, audit_context=None) -> ProjectParameter:
        parameter = self.get_parameter(parameter_id)
        before = _snapshot(parameter)

        if "key" in patch and patch["key"] is not None:
            new_key = str(patch["key"]).strip()
            # blank key leaves the key unchanged
            if new_key and new_key != parameter.key:
                _check_key(new_key)
                if ProjectParameter.objects.filter(key=new_key).exclude(pk=parameter.pk).exists():
                    raise DuplicateKey(f"A parameter with key '{new_key}' already exists.")
                parameter.key = new_key

        if "label" in patch:
            label = (patch["label"] or "").strip()
            if not label:
                raise ValidationError("Label cannot be empty.")
            parameter.label = _check_label(label)

        if "type" in patch:
            parameter.type = _clean_type(patch["type"])

        if "options" in patch:
            parameter.options = normalize_options(patch["options"])

        if "order" in patch:
            parameter.order = _clean_order(patch["order"])

        if parameter.type != ProjectParameter.FieldType.SELECT:
            parameter.options = None

        after = _snapshot(parameter)
        changed = [field for field in after if after[field] != before[field]]
        if not changed:
            return parameter

        try:
            with transaction.atomic():
                parameter.save()
        except IntegrityError:
            raise DuplicateKey(f"A parameter with key '{parameter.key}' already exists.")

        for field in changed:
            record_audit(
                actor=actor,
                entity=AuditLog.Entity.PARAMETER,
                action=AuditLog.Action.UPDATE,
                entity_id=parameter.id,
                field_name=field,
                old_value=before[field],
                new_value=after[field],
                **(audit_context or {}),
            )
        invalidate_permissions(self.cache)
        logger.info(f"Parameter {parameter.id} updated: {', '.join(changed)}")
        return parameter

    @transaction.atomic
    def delete_parameter(self, parameter_id, *, actor=None, audit_context=None) -> None:
        """
        Remove a parameter and its permission rows.

        Stored project attribute values under the key are left in place;
        they simply stop being projected.
        """
        parameter = self.get_parameter(parameter_id)
        snapshot = _snapshot(parameter)
        pk = parameter.pk
        parameter.delete()

        record_audit(
            actor=actor,
            entity=AuditLog.Entity.PARAMETER,
            action=AuditLog.Action.DELETE,
            entity_id=pk,
            old_value=as_json(snapshot),
            **(audit_context or {}),
        )
        invalidate_permissions(self.cache)
        logger.info(f"Parameter deleted: {snapshot['key']}")


class FieldPermissionTable:
    """Per-role capability lookups and the admin batch upsert."""

    def __init__(self, permission_cache=None):
        self.cache = permission_cache if permission_cache is not None else get_permission_cache()

    def get_permission(self, role, parameter_id) -> FieldCapabilities:
        role = normalize_role(role)
        if role is None:
            return effective_permission(None, None)

        key = str(parameter_id)
        caps = self.cache.get(role.value, key)
        if caps is None:
            pk = parse_uuid(parameter_id)
            row = FieldPermission.objects.filter(role=role.value, parameter_id=pk).first() if pk else None
            caps = effective_permission(None, row.capabilities) if row else FieldCapabilities()
            self.cache.set(role.value, key, caps)
        # ADMIN override applied last so cached rows never mask it
        return effective_permission(role, caps)

    def permissions_for_role(self, role) -> Dict[str, FieldCapabilities]:
        """Stored flags of one role keyed by ``str(parameter_id)`` (one query)."""
        role = normalize_role(role)
        if role is None:
            return {}

        mapping = self.cache.get_role_map(role.value)
        if mapping is None:
            mapping = {
                str(row.parameter_id): row.capabilities
                for row in FieldPermission.objects.filter(role=role.value)
            }
            self.cache.set_role_map(role.value, mapping)
        return mapping

    def list_permissions(self) -> List[FieldPermission]:
        return list(
            FieldPermission.objects
            .select_related("parameter")
            .order_by("parameter__order", "parameter__created_at", "role")
        )

    @transaction.atomic
    def set_permissions(self, entries: Iterable[Mapping], *, actor=None, audit_context=None) -> int:
        """
        Upsert a batch of ``{parameter_id, role, can_view, can_edit, can_update}``.

        Entries naming an unknown parameter or role are skipped without error.
        ADMIN rows are always stored fully enabled.
        """
        entries = list(entries)
        ids = {parse_uuid(entry.get("parameter_id")) for entry in entries}
        ids.discard(None)
        parameters = ProjectParameter.objects.in_bulk(list(ids))

        written = 0
        for entry in entries:
            pk = parse_uuid(entry.get("parameter_id"))
            parameter = parameters.get(pk) if pk else None
            role = normalize_role(entry.get("role"))
            if parameter is None or role is None:
                logger.debug(f"Skipping permission entry {entry!r}")
                continue

            caps = effective_permission(
                role,
                FieldCapabilities(
                    bool(entry.get("can_view")),
                    bool(entry.get("can_edit")),
                    bool(entry.get("can_update")),
                ),
            )
            row, created = FieldPermission.objects.update_or_create(
                parameter=parameter,
                role=role.value,
                defaults={
                    "can_view": caps.can_view,
                    "can_edit": caps.can_edit,
                    "can_update": caps.can_update,
                },
            )
            record_audit(
                actor=actor,
                entity=AuditLog.Entity.PERMISSION,
                action=AuditLog.Action.CREATE if created else AuditLog.Action.UPDATE,
                entity_id=row.id,
                new_value=json.dumps(
                    {"canView": caps.can_view, "canEdit": caps.can_edit, "canUpdate": caps.can_update}
                ),
                metadata={"parameterKey": parameter.key, "role": role.value},
                **(audit_context or {}),
            )
            written += 1

        invalidate_permissions(self.cache)
        logger.info(f"Field permissions updated: {written} of {len(entries)} entries written")
        return written

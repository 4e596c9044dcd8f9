"""
Project Projection Service.

The only code that reads or writes ``Project.attributes`` with a role in
mind. Reads are filtered to the parameters the role may view; writes are
filtered to the parameters it may edit. Visibility is computed once per
call so that every row of a listing exposes the same keys.
"""
import json
import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from django.db import transaction
from django.db.models import Count
from django.db.models.fields.json import KeyTextTransform

from app.core.models import AuditLog
from app.core.services.audit import as_json, record_audit
from app.platform.flac.cache import get_permission_cache
from app.platform.flac.models import ProjectParameter
from app.platform.flac.services import FieldPermissionTable, ParameterRegistry
from app.platform.rbac.constants import Roles
from app.platform.rbac.utils import effective_permission, normalize_role
from app.utils.exceptions import Forbidden, NotFound, ValidationError
from app.utils.identifiers import parse_uuid
from app.utils.pagination import paginate

from .models import Project

logger = logging.getLogger(__name__)

FIXED_FIELDS = ("name", "status")
CONFIDENTIAL_FIELD = "confidentialNotes"
DEFAULT_LIST_LIMIT = 10
NAME_MAX_LENGTH = Project._meta.get_field("name").max_length


def _check_name_length(name: str) -> None:
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Project name must be at most {NAME_MAX_LENGTH} characters.")


def clean_value(value):
    """Normalise a written attribute value to str / int / float / None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, default=str)


def compare_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def present_value(parameter: ProjectParameter, value):
    """Interpret a stored value by the parameter's type tag."""
    if value is None:
        return None
    if parameter.type == ProjectParameter.FieldType.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        text = str(value).strip()
        if text == "":
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            # keep unparseable input visible rather than dropping it
            return text
        return number if math.isfinite(number) else text
    return value if isinstance(value, str) else str(value)


class ProjectProjectionService:
    """
    Role-aware reads and writes of projects.

    Collaborators are injected; a single permission cache instance is
    shared by the registry and the permission table unless both are given.
    """

    def __init__(self, registry: Optional[ParameterRegistry] = None, permission_table: Optional[FieldPermissionTable] = None, permission_cache=None):
        cache = permission_cache if permission_cache is not None else get_permission_cache()
        self.registry = registry or ParameterRegistry(cache)
        self.permissions = permission_table or FieldPermissionTable(cache)

    # -----------------------------------------------------------------
    # Permission-derived key sets
    # -----------------------------------------------------------------
    def _require_role(self, role) -> Roles:
        resolved = normalize_role(role)
        if resolved is None:
            raise Forbidden("Unknown role.")
        return resolved

    def _parameters(self, parameters) -> List[ProjectParameter]:
        return list(parameters) if parameters is not None else self.registry.list_parameters()

    def viewable_parameters(self, role, parameters: Optional[Iterable[ProjectParameter]] = None) -> List[ProjectParameter]:
        role = self._require_role(role)
        params = self._parameters(parameters)
        stored = self.permissions.permissions_for_role(role)
        return [p for p in params if effective_permission(role, stored.get(str(p.id))).can_view]

    def viewable_keys(self, role, parameters=None) -> List[str]:
        return [p.key for p in self.viewable_parameters(role, parameters)]

    def editable_parameters(self, role, parameters: Optional[Iterable[ProjectParameter]] = None) -> List[ProjectParameter]:
        role = self._require_role(role)
        params = self._parameters(parameters)
        stored = self.permissions.permissions_for_role(role)
        # can_edit and can_update both grant write access here
        return [p for p in params if effective_permission(role, stored.get(str(p.id))).can_write]

    def editable_keys(self, role, parameters=None) -> Set[str]:
        return {p.key for p in self.editable_parameters(role, parameters)}

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------
    def project(self, role, record: Project, parameters: Optional[Iterable[ProjectParameter]] = None, include_confidential: bool = False) -> Dict:
        """
        Present ``record`` as ``role`` sees it.

        ``parameters`` is the already-filtered viewable set; when omitted it
        is computed here. Keys without a stored value map to ``None``.
        """
        role = self._require_role(role)
        visible = list(parameters) if parameters is not None else self.viewable_parameters(role)
        stored = record.attributes or {}

        data = {
            "id": record.id,
            "name": record.name,
            "status": record.status,
        }
        for parameter in visible:
            data[parameter.key] = present_value(parameter, stored.get(parameter.key))
        data["createdAt"] = record.created_at
        data["updatedAt"] = record.updated_at

        if include_confidential and role == Roles.ADMIN:
            data[CONFIDENTIAL_FIELD] = record.confidential_notes or ""
        return data

    def list_projects(self, role, filters: Optional[Mapping[str, str]] = None, search: Optional[str] = None, page: int = 1, limit: int = DEFAULT_LIST_LIMIT) -> Tuple[List[Dict], Dict, List[ProjectParameter]]:
        """
        One page of projections, newest update first.

        Returns ``(rows, pagination, visible_parameters)``. Filters on
        ``status`` match exactly; filters on viewable keys match a
        case-insensitive substring of the stored value; anything else is
        ignored.
        """
        role = self._require_role(role)
        visible = self.viewable_parameters(role)
        visible_keys = [p.key for p in visible]

        qs = Project.objects.all()

        search = (search or "").strip()
        if search:
            qs = qs.filter(name__icontains=search)

        for key, raw in (filters or {}).items():
            value = (raw or "").strip() if isinstance(raw, str) else raw
            if value in (None, ""):
                continue
            if key == "status":
                qs = qs.filter(status=value)
            elif key in visible_keys:
                alias = f"attr_filter_{visible_keys.index(key)}"
                qs = qs.annotate(**{alias: KeyTextTransform(key, "attributes")})
                qs = qs.filter(**{f"{alias}__icontains": value})

        qs = qs.order_by("-updated_at", "-created_at")
        records, pagination = paginate(qs, page, limit)
        rows = [self.project(role, record, parameters=visible) for record in records]
        return rows, pagination, visible

    def get_record(self, project_id) -> Project:
        pk = parse_uuid(project_id)
        record = Project.objects.filter(pk=pk).first() if pk else None
        if record is None:
            raise NotFound("Project not found.")
        return record

    def get_project(self, role, project_id, include_confidential: bool = False) -> Dict:
        return self.project(role, self.get_record(project_id), include_confidential=include_confidential)

    # -----------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------
    @transaction.atomic
    def create_project(self, role, data: Mapping, *, actor=None, audit_context=None) -> Project:
        role = self._require_role(role)

        name = compare_text(data.get("name"))
        if not name:
            raise ValidationError("Project name is required.")
        _check_name_length(name)
        status = compare_text(data.get("status")) or Project.STATUS_PENDING

        editable = self.editable_keys(role)
        attributes = {}
        for key, value in data.items():
            if key in FIXED_FIELDS or key == CONFIDENTIAL_FIELD:
                continue
            if key in editable:
                attributes[key] = clean_value(value)

        record = Project.objects.create(name=name, status=status, attributes=attributes)
        record_audit(
            actor=actor,
            entity=AuditLog.Entity.PROJECT,
            action=AuditLog.Action.CREATE,
            entity_id=record.id,
            new_value=as_json({"name": record.name, "status": record.status}),
            **(audit_context or {}),
        )
        logger.info(f"Project created: {record.id} by {role.value}")
        return record

    @transaction.atomic
    def apply_update(self, role, record: Project, patch: Mapping, *, actor=None, audit_context=None) -> Project:
        """
        Apply the writable part of ``patch`` to ``record``.

        Keys the role may not edit are dropped silently. Each field whose
        trimmed text changes gets one audit entry; a patch that changes
        nothing writes nothing. The attribute map is written back whole,
        so concurrent updates are last-write-wins.
        """
        role = self._require_role(role)
        editable = self.editable_keys(role)

        changes = []
        update_fields = []

        for field in FIXED_FIELDS:
            if field not in patch or patch[field] is None:
                continue
            new = compare_text(patch[field])
            # status is free-form and may be cleared
            if field == "name":
                if not new:
                    raise ValidationError("Project name cannot be empty.")
                _check_name_length(new)
            old = getattr(record, field)
            if new != compare_text(old):
                changes.append((field, compare_text(old), new))
                setattr(record, field, new)
                update_fields.append(field)

        attributes = dict(record.attributes or {})
        attributes_changed = False
        for key, raw in patch.items():
            if key in FIXED_FIELDS or key not in editable:
                continue
            new = clean_value(raw)
            old = attributes.get(key)
            if compare_text(new) != compare_text(old):
                changes.append((key, compare_text(old), compare_text(new)))
                attributes[key] = new
                attributes_changed = True

        if not changes:
            return record

        if attributes_changed:
            record.attributes = attributes
            update_fields.append("attributes")
        record.save(update_fields=update_fields + ["updated_at"])

        for field, old, new in changes:
            record_audit(
                actor=actor,
                entity=AuditLog.Entity.PROJECT,
                action=AuditLog.Action.UPDATE,
                entity_id=record.id,
                field_name=field,
                old_value=old,
                new_value=new,
                **(audit_context or {}),
            )
        logger.info(f"Project {record.id} updated by {role.value}: {', '.join(c[0] for c in changes)}")
        return record

    def get_confidential_notes(self, role, project_id) -> str:
        if self._require_role(role) != Roles.ADMIN:
            raise Forbidden("Confidential notes are restricted to admins.")
        return self.get_record(project_id).confidential_notes or ""

    @transaction.atomic
    def update_confidential_notes(self, role, project_id, notes, *, actor=None, audit_context=None) -> Project:
        if self._require_role(role) != Roles.ADMIN:
            raise Forbidden("Confidential notes are restricted to admins.")

        record = self.get_record(project_id)
        old = record.confidential_notes or ""
        new = notes if isinstance(notes, str) else ""
        if new == old:
            return record

        record.confidential_notes = new
        record.save(update_fields=["confidential_notes", "updated_at"])
        record_audit(
            actor=actor,
            entity=AuditLog.Entity.PROJECT,
            action=AuditLog.Action.UPDATE,
            entity_id=record.id,
            field_name=CONFIDENTIAL_FIELD,
            old_value=old,
            new_value=new,
            **(audit_context or {}),
        )
        return record

    def status_counts(self) -> Dict[str, int]:
        return {
            row["status"]: row["total"]
            for row in Project.objects.values("status").annotate(total=Count("id")).order_by("status")
        }

"""Helper functions for writing audit logs."""
import json
import logging
from typing import Optional, Mapping, Any

from app.core.models import AuditLog

logger = logging.getLogger(__name__)


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def as_json(payload: Mapping[str, Any]) -> str:
    """Compact JSON snapshot used for create/delete old/new values."""
    return json.dumps(payload, sort_keys=True, default=str)


def client_context(request) -> dict:
    """IP address and user agent of the caller, for ``record_audit(**...)``."""
    if request is None:
        return {}
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    else:
        ip = request.META.get("REMOTE_ADDR")
    return {
        "ip_address": ip or None,
        "user_agent": request.META.get("HTTP_USER_AGENT", "")[:500],
    }


def record_audit(*, actor=None, entity: str, action: str, entity_id=None, field_name: Optional[str] = None, old_value=None, new_value=None, metadata: Optional[Mapping[str, Any]] = None, ip_address: Optional[str] = None, user_agent: str = "") -> AuditLog:
    entry = AuditLog.objects.create(
        actor=actor,
        entity=entity,
        entity_id=_as_text(entity_id),
        action=action,
        field_name=field_name,
        old_value=_as_text(old_value),
        new_value=_as_text(new_value),
        metadata=dict(metadata) if metadata else None,
        ip_address=ip_address,
        user_agent=user_agent or "",
    )
    logger.debug(f"audit {action} {entity}:{entity_id} field={field_name} by {getattr(actor, 'email', 'system')}")
    return entry

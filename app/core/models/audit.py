"""Audit logging primitives."""
from django.conf import settings
from django.db import models
from django.utils import timezone

from .base import UUIDPrimaryKeyModel


class AuditLog(UUIDPrimaryKeyModel):
    """Append-only record of one user action, optionally scoped to a single field."""

    class Entity(models.TextChoices):
        USER = "user", "User"
        PROJECT = "project", "Project"
        MESSAGE = "message", "Message"
        PARAMETER = "parameter", "Parameter"
        PERMISSION = "permission", "Permission"
        ACCOUNT = "account", "Account"
        NOTIFICATION = "notification", "Notification"

    class Action(models.TextChoices):
        CREATE = "create", "Create"
        UPDATE = "update", "Update"
        DELETE = "delete", "Delete"

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="audit_logs",
    )

    entity = models.CharField(max_length=32, choices=Entity.choices)
    entity_id = models.CharField(max_length=64, null=True, blank=True)
    action = models.CharField(max_length=16, choices=Action.choices)

    field_name = models.CharField(max_length=128, null=True, blank=True)
    old_value = models.TextField(null=True, blank=True)
    new_value = models.TextField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(default=timezone.now, editable=False, db_index=True)

    class Meta:
        db_table = "core_audit_logs"
        indexes = [
            models.Index(fields=["entity", "entity_id"], name="core_audit_entity_idx"),
            models.Index(fields=["actor"], name="core_audit_actor_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        ts = self.created_at.astimezone(timezone.utc) if self.created_at else ""
        actor = getattr(self.actor, "email", "system")
        target = f"{self.entity}:{self.entity_id}" if self.entity_id else self.entity
        return f"[{ts}] {actor} -> {self.action} {target}"

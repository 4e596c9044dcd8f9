from django.conf import settings
from django.db import models
from django.utils import timezone

from app.core.models import UUIDPrimaryKeyModel


class Message(UUIDPrimaryKeyModel):
    """Broadcast message; posting one notifies every active user."""

    class Priority(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        IMPORTANT = "IMPORTANT", "Important"

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sent_messages",
    )
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True, default="")
    priority = models.CharField(max_length=16, choices=Priority.choices, default=Priority.NORMAL, db_index=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "inbox_messages"
        ordering = ["-created_at"]

    def __str__(self):
        return self.title


class Notification(UUIDPrimaryKeyModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "inbox_notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "read"], name="inbox_notif_user_read_idx"),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.message_id} ({'read' if self.read else 'unread'})"

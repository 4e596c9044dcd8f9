"""Posting messages and managing per-user notifications."""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from app.core.models import AuditLog
from app.core.services.audit import as_json, record_audit
from app.utils.exceptions import NotFound, ValidationError
from app.utils.identifiers import parse_uuid

from .models import Message, Notification

logger = logging.getLogger(__name__)

User = get_user_model()

TITLE_MAX_LENGTH = Message._meta.get_field("title").max_length


def normalize_priority(value) -> str:
    if str(value or "").strip().upper() == Message.Priority.IMPORTANT:
        return Message.Priority.IMPORTANT
    return Message.Priority.NORMAL


@transaction.atomic
def post_message(*, sender, title, body="", priority=None, audit_context=None) -> Message:
    """Create a message and one unread notification per active user."""
    title = str(title or "").strip()
    if not title:
        raise ValidationError("Title is required.")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters.")

    message = Message.objects.create(
        sender=sender,
        title=title,
        body=str(body or "").strip(),
        priority=normalize_priority(priority),
    )
    record_audit(
        actor=sender,
        entity=AuditLog.Entity.MESSAGE,
        action=AuditLog.Action.CREATE,
        entity_id=message.id,
        new_value=as_json({"title": message.title, "priority": message.priority}),
        **(audit_context or {}),
    )

    recipients = User.objects.filter(is_active=True).values_list("pk", flat=True)
    notifications = Notification.objects.bulk_create(
        [Notification(user_id=pk, message=message) for pk in recipients]
    )
    logger.info(f"Message {message.id} posted, {len(notifications)} notifications created")
    return message


def get_message(message_id) -> Message:
    pk = parse_uuid(message_id)
    message = Message.objects.select_related("sender").filter(pk=pk).first() if pk else None
    if message is None:
        raise NotFound("Message not found.")
    return message


def list_messages(priority=None):
    qs = Message.objects.select_related("sender").order_by("-created_at")
    if priority in (Message.Priority.NORMAL, Message.Priority.IMPORTANT):
        qs = qs.filter(priority=priority)
    return qs


def notifications_for(user):
    return (
        Notification.objects
        .filter(user=user)
        .select_related("message")
        .order_by("-created_at")
    )


def unread_count(user) -> int:
    return Notification.objects.filter(user=user, read=False).count()


def mark_read(user, notification_id) -> Notification:
    """Mark one of ``user``'s notifications read; others' look absent."""
    pk = parse_uuid(notification_id)
    notification = Notification.objects.filter(pk=pk, user=user).first() if pk else None
    if notification is None:
        raise NotFound("Notification not found.")
    if not notification.read:
        notification.read = True
        notification.save(update_fields=["read"])
    return notification

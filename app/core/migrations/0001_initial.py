import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "entity",
                    models.CharField(
                        choices=[
                            ("user", "User"),
                            ("project", "Project"),
                            ("message", "Message"),
                            ("parameter", "Parameter"),
                            ("permission", "Permission"),
                            ("account", "Account"),
                            ("notification", "Notification"),
                        ],
                        max_length=32,
                    ),
                ),
                ("entity_id", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "action",
                    models.CharField(
                        choices=[("create", "Create"), ("update", "Update"), ("delete", "Delete")],
                        max_length=16,
                    ),
                ),
                ("field_name", models.CharField(blank=True, max_length=128, null=True)),
                ("old_value", models.TextField(blank=True, null=True)),
                ("new_value", models.TextField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, null=True)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.CharField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "core_audit_logs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["entity", "entity_id"], name="core_audit_entity_idx"),
                    models.Index(fields=["actor"], name="core_audit_actor_idx"),
                ],
            },
        ),
    ]

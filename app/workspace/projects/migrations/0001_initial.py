import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255)),
                ("status", models.TextField(db_index=True, default="pending")),
                ("attributes", models.JSONField(blank=True, default=dict)),
                ("confidential_notes", models.TextField(blank=True, null=True)),
            ],
            options={
                "db_table": "workspace_projects",
                "ordering": ["-updated_at"],
            },
        ),
    ]

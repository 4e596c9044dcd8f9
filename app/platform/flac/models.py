"""Field-Level Access Control models."""
from django.db import models

from app.core.models import CoreBaseModel
from app.platform.rbac.constants import ROLE_CHOICES
from app.platform.rbac.utils import FieldCapabilities


class ProjectParameter(CoreBaseModel):
    """Admin-defined extra project field (key/label/type/options/order)."""

    class FieldType(models.TextChoices):
        TEXT = "text", "Text"
        NUMBER = "number", "Number"
        DATE = "date", "Date"
        SELECT = "select", "Select"

    key = models.CharField(max_length=100, unique=True)
    label = models.CharField(max_length=200)
    type = models.CharField(max_length=16, choices=FieldType.choices, default=FieldType.TEXT)
    options = models.TextField(null=True, blank=True)  # comma-separated, select only
    order = models.IntegerField(default=0)

    class Meta:
        db_table = "flac_project_parameters"
        ordering = ["order", "created_at"]

    def __str__(self):
        return f"{self.label} ({self.key})"

    @property
    def option_list(self):
        if not self.options:
            return []
        return [o for o in self.options.split(",") if o]


class FieldPermission(CoreBaseModel):
    """Per-role capability flags on one parameter. A missing row means no access."""

    parameter = models.ForeignKey(
        ProjectParameter,
        on_delete=models.CASCADE,
        related_name="field_permissions",
    )
    role = models.CharField(max_length=16, choices=ROLE_CHOICES)
    can_view = models.BooleanField(default=False)
    can_edit = models.BooleanField(default=False)
    can_update = models.BooleanField(default=False)

    class Meta:
        db_table = "flac_field_permissions"
        unique_together = ("parameter", "role")
        indexes = [
            models.Index(fields=["role"], name="flac_perm_role_idx"),
        ]

    def __str__(self):
        return f"{self.role} on {self.parameter_id}: v={self.can_view} e={self.can_edit} u={self.can_update}"

    @property
    def capabilities(self) -> FieldCapabilities:
        return FieldCapabilities(self.can_view, self.can_edit, self.can_update)

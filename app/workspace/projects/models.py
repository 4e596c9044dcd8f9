from django.db import models

from app.core.models import CoreBaseModel


# =========================================================
#  PROJECT MODEL
# =========================================================
class Project(CoreBaseModel):
    """
    Fixed project columns plus a free-form bag of parameter values.

    ``attributes`` maps parameter keys to scalar values. It is never
    validated against the current parameter set: keys of deleted
    parameters stay stored and are hidden at projection time.
    """

    STATUS_PENDING = "pending"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"

    # UI suggestions only; status is free-form server-side
    SUGGESTED_STATUSES = [STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED]

    name = models.CharField(max_length=255)
    status = models.TextField(default=STATUS_PENDING, db_index=True)
    attributes = models.JSONField(default=dict, blank=True)

    # ADMIN-only, never part of a role projection
    confidential_notes = models.TextField(blank=True, null=True)

    class Meta:
        db_table = "workspace_projects"
        ordering = ["-updated_at"]

    def __str__(self):
        return self.name

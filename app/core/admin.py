from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "entity", "entity_id", "action", "field_name", "actor")
    list_filter = ("entity", "action")
    search_fields = ("entity_id", "field_name")
    readonly_fields = [f.name for f in AuditLog._meta.fields]

from django.contrib import admin

from .models import FieldPermission, ProjectParameter


class FieldPermissionInline(admin.TabularInline):
    model = FieldPermission
    extra = 0


@admin.register(ProjectParameter)
class ProjectParameterAdmin(admin.ModelAdmin):
    list_display = ("key", "label", "type", "order", "created_at")
    search_fields = ("key", "label")
    ordering = ("order", "created_at")
    inlines = [FieldPermissionInline]


@admin.register(FieldPermission)
class FieldPermissionAdmin(admin.ModelAdmin):
    list_display = ("parameter", "role", "can_view", "can_edit", "can_update")
    list_filter = ("role",)

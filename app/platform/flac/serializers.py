from rest_framework import serializers

from .models import FieldPermission, ProjectParameter


class ProjectParameterSerializer(serializers.ModelSerializer):
    optionList = serializers.ListField(source="option_list", child=serializers.CharField(), read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = ProjectParameter
        fields = ["id", "key", "label", "type", "options", "optionList", "order", "createdAt", "updatedAt"]
        read_only_fields = fields


class ParameterWriteSerializer(serializers.Serializer):
    """Shape check only; trimming and uniqueness live in ParameterRegistry."""

    key = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    label = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    type = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    options = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    order = serializers.IntegerField(required=False, allow_null=True)


class FieldPermissionSerializer(serializers.ModelSerializer):
    parameterId = serializers.UUIDField(source="parameter_id", read_only=True)
    parameterKey = serializers.CharField(source="parameter.key", read_only=True)
    parameterLabel = serializers.CharField(source="parameter.label", read_only=True)
    canView = serializers.BooleanField(source="can_view", read_only=True)
    canEdit = serializers.BooleanField(source="can_edit", read_only=True)
    canUpdate = serializers.BooleanField(source="can_update", read_only=True)

    class Meta:
        model = FieldPermission
        fields = ["id", "parameterId", "parameterKey", "parameterLabel", "role", "canView", "canEdit", "canUpdate"]


class FieldPermissionEntrySerializer(serializers.Serializer):
    # ids and roles stay loose here: unknown ones are skipped, not rejected
    parameterId = serializers.CharField(source="parameter_id", required=False, allow_blank=True, allow_null=True)
    role = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    canView = serializers.BooleanField(source="can_view", required=False, default=False)
    canEdit = serializers.BooleanField(source="can_edit", required=False, default=False)
    canUpdate = serializers.BooleanField(source="can_update", required=False, default=False)


class FieldPermissionBatchSerializer(serializers.Serializer):
    permissions = FieldPermissionEntrySerializer(many=True, allow_empty=True)

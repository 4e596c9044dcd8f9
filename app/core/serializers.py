from rest_framework import serializers

from .models import AuditLog


class AuditActorSerializer(serializers.Serializer):
    userId = serializers.UUIDField(read_only=True)
    email = serializers.EmailField(read_only=True)
    name = serializers.CharField(read_only=True)


class AuditLogSerializer(serializers.ModelSerializer):
    actor = AuditActorSerializer(read_only=True)
    entityId = serializers.CharField(source="entity_id", read_only=True)
    fieldName = serializers.CharField(source="field_name", read_only=True)
    oldValue = serializers.CharField(source="old_value", read_only=True)
    newValue = serializers.CharField(source="new_value", read_only=True)
    ipAddress = serializers.IPAddressField(source="ip_address", read_only=True)
    userAgent = serializers.CharField(source="user_agent", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            "id", "actor", "entity", "entityId", "action", "fieldName",
            "oldValue", "newValue", "metadata", "ipAddress", "userAgent", "createdAt",
        ]

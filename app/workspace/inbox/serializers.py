from rest_framework import serializers

from .models import Message, Notification


class SenderSerializer(serializers.Serializer):
    userId = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)


class MessageSerializer(serializers.ModelSerializer):
    sender = SenderSerializer(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = ["id", "title", "body", "priority", "sender", "createdAt"]


class MessageCreateSerializer(serializers.Serializer):
    title = serializers.CharField(allow_blank=True, required=False, default="")
    body = serializers.CharField(allow_blank=True, required=False, default="")
    priority = serializers.CharField(allow_blank=True, required=False, allow_null=True)


class NotificationMessageSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = ["id", "title", "priority", "createdAt"]


class NotificationSerializer(serializers.ModelSerializer):
    message = NotificationMessageSerializer(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Notification
        fields = ["id", "read", "message", "createdAt"]

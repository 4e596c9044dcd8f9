# app/platform/accounts/serializers.py
from rest_framework import serializers

from app.platform.accounts.models import User


# =======================================================
# USER (read shape used everywhere)
# =======================================================
class UserSerializer(serializers.ModelSerializer):
    dashboardColumnKeys = serializers.ListField(
        source="dashboard_column_keys", child=serializers.CharField(), read_only=True
    )
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = User
        fields = ["userId", "email", "name", "role", "dashboardColumnKeys", "isActive", "createdAt"]
        read_only_fields = fields


# =======================================================
# SIGN-IN (AUTH ONLY: DO NOT LEAK ACCOUNT EXISTENCE)
# =======================================================
class SignInSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_email(self, value):
        return value.lower().strip()


class TokenRefreshSerializer(serializers.Serializer):
    """Refresh token, when not sent as the HttpOnly cookie."""

    refresh = serializers.CharField(required=False, allow_blank=True)


# =======================================================
# ADMIN USER MANAGEMENT
# =======================================================
class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, trim_whitespace=False)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    role = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class UserUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    role = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    password = serializers.CharField(required=False, write_only=True, min_length=6, trim_whitespace=False)
    isActive = serializers.BooleanField(source="is_active", required=False)


# =======================================================
# SELF-SERVICE ACCOUNT
# =======================================================
class AccountUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    oldPassword = serializers.CharField(source="old_password", required=False, allow_blank=True, write_only=True, trim_whitespace=False)
    newPassword = serializers.CharField(source="new_password", required=False, allow_blank=True, write_only=True, trim_whitespace=False)
    dashboardColumnKeys = serializers.ListField(
        source="dashboard_column_keys",
        child=serializers.CharField(),
        required=False,
        allow_empty=True,
    )

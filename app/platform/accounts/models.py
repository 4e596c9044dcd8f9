import uuid
from django.db import models
from django.contrib.auth.models import (
    AbstractBaseUser,
    PermissionsMixin,
    BaseUserManager,
)
from django.utils import timezone

from app.platform.rbac.constants import ROLE_CHOICES, DEFAULT_ROLE, Roles


# ================================================
# USER MANAGER
# ================================================
class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required")

        email = self.normalize_email(email).lower().strip()
        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", DEFAULT_ROLE.value)
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("is_superuser", False)

        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", Roles.ADMIN.value)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_staff", True)

        return self._create_user(email, password, **extra_fields)


# ================================================
# USER MODEL
# ================================================
class User(AbstractBaseUser, PermissionsMixin):

    userId = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Map .id to userId for DRF/django consistency
    @property
    def id(self):
        return self.userId

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=200, blank=True, null=True)

    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=DEFAULT_ROLE.value)

    # Parameter keys the user picked as project table columns
    dashboard_column_keys = models.JSONField(default=list, blank=True)

    is_staff = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        db_table = "accounts_users"
        ordering = ["-created_at"]

    def __str__(self):
        return self.email

    @property
    def display_name(self):
        return self.name or self.email

import itertools

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from app.platform.accounts.models import User
from app.platform.flac.cache import NullPermissionCache, get_permission_cache
from app.platform.flac.models import FieldPermission, ProjectParameter
from app.platform.flac.services import FieldPermissionTable, ParameterRegistry
from app.workspace.projects.models import Project
from app.workspace.projects.services import ProjectProjectionService

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _isolated_cache():
    cache.clear()
    yield
    cache.clear()


# ---------------------------------------------------------
# Users
# ---------------------------------------------------------
@pytest.fixture
def make_user(db):
    counter = itertools.count()

    def _make(role="STAFF", email=None, password=PASSWORD, **extra):
        email = email or f"{role.lower()}{next(counter)}@example.com"
        return User.objects.create_user(email=email, password=password, role=role, **extra)

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("ADMIN", email="admin@example.com", name="Admin")


@pytest.fixture
def manager_user(make_user):
    return make_user("MANAGER", email="manager@example.com", name="Manager")


@pytest.fixture
def staff_user(make_user):
    return make_user("STAFF", email="staff@example.com", name="Staff")


# ---------------------------------------------------------
# API clients
# ---------------------------------------------------------
@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------
# Services without caching
# ---------------------------------------------------------
@pytest.fixture
def null_cache():
    return NullPermissionCache()


@pytest.fixture
def registry(null_cache):
    return ParameterRegistry(null_cache)


@pytest.fixture
def permission_table(null_cache):
    return FieldPermissionTable(null_cache)


@pytest.fixture
def projection(null_cache):
    return ProjectProjectionService(permission_cache=null_cache)


# ---------------------------------------------------------
# Data helpers
# ---------------------------------------------------------
@pytest.fixture
def make_parameter(db):
    def _make(key, label=None, type="text", options=None, order=0):
        return ProjectParameter.objects.create(
            key=key, label=label or key.title(), type=type, options=options, order=order
        )

    return _make


@pytest.fixture
def grant(db):
    """Store a permission row directly, then drop cached lookups."""

    def _grant(parameter, role, view=False, edit=False, update=False):
        row, _ = FieldPermission.objects.update_or_create(
            parameter=parameter,
            role=role,
            defaults={"can_view": view, "can_edit": edit, "can_update": update},
        )
        get_permission_cache().clear()
        return row

    return _grant


@pytest.fixture
def make_project(db):
    def _make(name="Project", status="pending", attributes=None, confidential_notes=None):
        return Project.objects.create(
            name=name,
            status=status,
            attributes=attributes or {},
            confidential_notes=confidential_notes,
        )

    return _make


@pytest.fixture
def board(make_parameter, grant):
    """
    Three parameters with a typical permission layout.

    STAFF sees dueDate only; MANAGER sees dueDate (edit) and budget
    (update); nobody but ADMIN sees notes.
    """
    due = make_parameter("dueDate", "Due Date", type="date", order=0)
    budget = make_parameter("budget", "Budget", type="number", order=1)
    notes = make_parameter("notes", "Notes", type="text", order=2)

    grant(due, "STAFF", view=True)
    grant(due, "MANAGER", view=True, edit=True)
    grant(budget, "MANAGER", view=True, update=True)
    grant(budget, "STAFF", view=False)
    return {"dueDate": due, "budget": budget, "notes": notes}

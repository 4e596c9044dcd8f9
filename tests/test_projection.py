import pytest

from app.core.models import AuditLog
from app.platform.flac.models import ProjectParameter
from app.platform.flac.services import ParameterRegistry
from app.workspace.projects.models import Project
from app.workspace.projects.services import present_value
from app.utils.exceptions import Forbidden, NotFound, ValidationError

pytestmark = pytest.mark.django_db


def project_audits(project):
    return AuditLog.objects.filter(entity="project", entity_id=str(project.id), action="update")


# ---------------------------------------------------------
# Viewable / editable keys
# ---------------------------------------------------------
def test_viewable_keys_require_can_view(projection, board):
    assert projection.viewable_keys("STAFF") == ["dueDate"]
    assert projection.viewable_keys("MANAGER") == ["dueDate", "budget"]


def test_admin_views_and_edits_every_key(projection, board, grant):
    grant(board["notes"], "ADMIN", view=False)
    assert projection.viewable_keys("ADMIN") == ["dueDate", "budget", "notes"]
    assert projection.editable_keys("ADMIN") == {"dueDate", "budget", "notes"}


def test_edit_and_update_flags_both_grant_write(projection, board):
    assert projection.editable_keys("MANAGER") == {"dueDate", "budget"}
    assert projection.editable_keys("STAFF") == set()


def test_unknown_role_is_forbidden(projection, board):
    with pytest.raises(Forbidden):
        projection.viewable_keys("GUEST")


# ---------------------------------------------------------
# Projection
# ---------------------------------------------------------
def test_projection_shows_only_viewable_keys(projection, board, make_project):
    project = make_project(attributes={"dueDate": "2025-03-01", "budget": 100, "notes": "secret"})

    data = projection.project("STAFF", project)

    assert data["dueDate"] == "2025-03-01"
    assert "budget" not in data
    assert "notes" not in data
    assert {"id", "name", "status", "createdAt", "updatedAt"} <= set(data)


def test_missing_values_surface_as_none(projection, board, make_project):
    project = make_project(attributes={})
    data = projection.project("MANAGER", project)
    assert data["dueDate"] is None
    assert data["budget"] is None


def test_confidential_notes_need_admin_and_the_flag(projection, board, make_project):
    project = make_project(confidential_notes="eyes only")

    assert "confidentialNotes" not in projection.project("ADMIN", project)
    assert "confidentialNotes" not in projection.project("MANAGER", project, include_confidential=True)
    assert projection.project("ADMIN", project, include_confidential=True)["confidentialNotes"] == "eyes only"


@pytest.mark.parametrize(
    "stored,expected",
    [("42", 42), (" 2.5 ", 2.5), (7, 7), ("n/a", "n/a"), ("", None), ("inf", "inf")],
)
def test_number_values_are_parsed_for_presentation(stored, expected):
    parameter = ProjectParameter(key="budget", label="Budget", type="number")
    assert present_value(parameter, stored) == expected


def test_non_number_values_are_presented_as_text():
    parameter = ProjectParameter(key="ref", label="Ref", type="text")
    assert present_value(parameter, 12) == "12"
    assert present_value(parameter, None) is None


# ---------------------------------------------------------
# Listing
# ---------------------------------------------------------
def test_every_listed_row_has_the_same_keys(projection, board, make_project):
    make_project("A", attributes={"dueDate": "2025-01-01"})
    make_project("B", attributes={"budget": 5})
    make_project("C", attributes={"unrelated": "x"})

    rows, pagination, visible = projection.list_projects("MANAGER")

    assert pagination["total"] == 3
    assert [p.key for p in visible] == ["dueDate", "budget"]
    key_sets = {frozenset(row) for row in rows}
    assert len(key_sets) == 1
    assert {"dueDate", "budget"} <= next(iter(key_sets))
    assert "unrelated" not in next(iter(key_sets))


def test_list_is_newest_update_first(projection, board, make_project):
    old = make_project("old")
    make_project("new")
    projection.apply_update("ADMIN", old, {"status": "in_progress"})

    rows, _, _ = projection.list_projects("ADMIN")
    assert [row["name"] for row in rows] == ["old", "new"]


def test_list_filters_by_status_and_viewable_keys(projection, board, make_project):
    make_project("A", status="pending", attributes={"dueDate": "2025-01-15"})
    make_project("B", status="completed", attributes={"dueDate": "2025-02-01"})
    make_project("C", status="pending", attributes={"dueDate": "2024-12-31"})

    rows, _, _ = projection.list_projects("STAFF", filters={"status": "pending"})
    assert sorted(r["name"] for r in rows) == ["A", "C"]

    rows, _, _ = projection.list_projects("STAFF", filters={"dueDate": "2025-"})
    assert sorted(r["name"] for r in rows) == ["A", "B"]


def test_filters_on_hidden_or_unknown_keys_are_ignored(projection, board, make_project):
    make_project("A", attributes={"budget": 1})
    make_project("B", attributes={"budget": 2})

    rows, _, _ = projection.list_projects("STAFF", filters={"budget": "1", "whatever": "x"})
    assert len(rows) == 2


def test_list_search_and_pagination(projection, board, make_project):
    for index in range(5):
        make_project(f"Billing {index}")
    make_project("Search revamp")

    rows, pagination, _ = projection.list_projects("STAFF", search="billing", page=2, limit=2)
    assert len(rows) == 2
    assert pagination == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}


def test_deleted_parameter_disappears_but_value_is_kept(projection, board, make_project, null_cache):
    project = make_project(attributes={"dueDate": "2025-01-01", "budget": 9})

    ParameterRegistry(null_cache).delete_parameter(board["dueDate"].id)

    for role in ("ADMIN", "MANAGER", "STAFF"):
        rows, _, _ = projection.list_projects(role)
        assert all("dueDate" not in row for row in rows)
    project.refresh_from_db()
    assert project.attributes["dueDate"] == "2025-01-01"


def test_get_project_not_found(projection):
    with pytest.raises(NotFound):
        projection.get_project("ADMIN", "8d0d4f6a-5b8e-4a53-9f0a-1f0f3d7f6a11")
    with pytest.raises(NotFound):
        projection.get_project("ADMIN", "nope")


# ---------------------------------------------------------
# Creation
# ---------------------------------------------------------
def test_create_keeps_only_editable_keys(projection, board, manager_user):
    project = projection.create_project(
        "MANAGER",
        {
            "name": "  Launch ",
            "dueDate": "2025-05-01",
            "budget": 1200,
            "notes": "not allowed",
            "confidentialNotes": "nope",
        },
        actor=manager_user,
    )

    assert project.name == "Launch"
    assert project.status == "pending"
    assert project.attributes == {"dueDate": "2025-05-01", "budget": 1200}
    assert project.confidential_notes is None
    assert AuditLog.objects.filter(entity="project", action="create", entity_id=str(project.id)).exists()


def test_create_requires_a_name(projection, board):
    with pytest.raises(ValidationError):
        projection.create_project("ADMIN", {"name": "   "})
    with pytest.raises(ValidationError):
        projection.create_project("ADMIN", {})


def test_admin_never_sets_confidential_notes_on_create(projection, board):
    project = projection.create_project("ADMIN", {"name": "X", "confidentialNotes": "secret"})
    assert project.confidential_notes is None


# ---------------------------------------------------------
# apply_update
# ---------------------------------------------------------
def test_staff_cannot_write_view_only_due_date(projection, board, make_project, staff_user):
    project = make_project(attributes={"dueDate": "2025-01-01"})

    projection.apply_update("STAFF", project, {"dueDate": "2030-01-01"}, actor=staff_user)

    project.refresh_from_db()
    assert project.attributes["dueDate"] == "2025-01-01"
    assert projection.project("STAFF", project)["dueDate"] == "2025-01-01"
    assert not project_audits(project).exists()


def test_each_changed_field_gets_one_audit_entry(projection, board, make_project, manager_user):
    project = make_project(name="Old", attributes={"dueDate": "2025-01-01", "budget": 10})

    projection.apply_update(
        "MANAGER",
        project,
        {"name": "New", "dueDate": "2025-02-02", "budget": "10", "notes": "ignored"},
        actor=manager_user,
    )

    entries = {e.field_name: (e.old_value, e.new_value) for e in project_audits(project)}
    assert entries == {"name": ("Old", "New"), "dueDate": ("2025-01-01", "2025-02-02")}
    project.refresh_from_db()
    assert project.name == "New"
    assert project.attributes == {"dueDate": "2025-02-02", "budget": 10}


def test_apply_update_is_idempotent(projection, board, make_project, manager_user):
    project = make_project(attributes={"dueDate": "2025-01-01"})
    patch = {"dueDate": "2025-06-30", "status": "in_progress"}

    projection.apply_update("MANAGER", project, patch, actor=manager_user)
    first = Project.objects.get(pk=project.pk)
    projection.apply_update("MANAGER", first, patch, actor=manager_user)
    second = Project.objects.get(pk=project.pk)

    assert project_audits(project).count() == 2
    assert second.updated_at == first.updated_at
    assert second.attributes == first.attributes


def test_comparison_uses_trimmed_text(projection, board, make_project):
    project = make_project(attributes={"dueDate": "2025-01-01"})
    projection.apply_update("ADMIN", project, {"dueDate": "  2025-01-01 ", "status": " pending "})
    assert not project_audits(project).exists()


def test_missing_value_counts_as_empty_string(projection, board, make_project):
    project = make_project(attributes={})
    projection.apply_update("ADMIN", project, {"notes": ""})
    assert not project_audits(project).exists()

    projection.apply_update("ADMIN", project, {"notes": "hello"})
    entry = project_audits(project).get()
    assert (entry.old_value, entry.new_value) == ("", "hello")


def test_blank_name_is_rejected(projection, board, make_project):
    project = make_project(name="Keep")
    with pytest.raises(ValidationError):
        projection.apply_update("ADMIN", project, {"name": "  "})
    project.refresh_from_db()
    assert project.name == "Keep"


def test_blank_status_is_stored_trimmed(projection, board, make_project):
    project = make_project(status="pending")

    projection.apply_update("ADMIN", project, {"status": "   "})

    project.refresh_from_db()
    assert project.status == ""
    entry = project_audits(project).get(field_name="status")
    assert (entry.old_value, entry.new_value) == ("pending", "")


def test_status_accepts_long_text(projection, board, make_project):
    project = make_project()
    long_status = "waiting on " + "x" * 300

    projection.apply_update("ADMIN", project, {"status": long_status})

    project.refresh_from_db()
    assert project.status == long_status


def test_overlong_name_is_rejected(projection, board, make_project):
    project = make_project(name="Keep")
    with pytest.raises(ValidationError):
        projection.apply_update("ADMIN", project, {"name": "n" * 256})
    with pytest.raises(ValidationError):
        projection.create_project("ADMIN", {"name": "n" * 256})
    project.refresh_from_db()
    assert project.name == "Keep"


def test_non_scalar_values_are_stored_as_text(projection, board, make_project):
    project = make_project()
    projection.apply_update("ADMIN", project, {"notes": ["a", "b"]})
    project.refresh_from_db()
    assert project.attributes["notes"] == '["a", "b"]'


def test_concurrent_stale_updates_lose_one_change_without_corruption(projection, board, make_project):
    project = make_project(attributes={"dueDate": "2025-01-01", "budget": 1, "legacy": "kept"})
    copy_a = Project.objects.get(pk=project.pk)
    copy_b = Project.objects.get(pk=project.pk)

    projection.apply_update("MANAGER", copy_a, {"dueDate": "2025-09-09"})
    projection.apply_update("MANAGER", copy_b, {"budget": 2})

    project.refresh_from_db()
    # last write wins on the whole map
    assert project.attributes == {"dueDate": "2025-01-01", "budget": 2, "legacy": "kept"}


# ---------------------------------------------------------
# Confidential notes
# ---------------------------------------------------------
def test_confidential_notes_are_admin_only(projection, make_project, manager_user):
    project = make_project()
    with pytest.raises(Forbidden):
        projection.update_confidential_notes("MANAGER", project.id, "x", actor=manager_user)
    with pytest.raises(Forbidden):
        projection.get_confidential_notes("STAFF", project.id)


def test_confidential_notes_update_is_audited(projection, make_project, admin_user):
    project = make_project(confidential_notes="old")

    projection.update_confidential_notes("ADMIN", project.id, "new", actor=admin_user)

    assert projection.get_confidential_notes("ADMIN", project.id) == "new"
    entry = project_audits(project).get(field_name="confidentialNotes")
    assert (entry.old_value, entry.new_value) == ("old", "new")

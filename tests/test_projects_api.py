import pytest

from app.core.models import AuditLog
from app.workspace.projects.models import Project

pytestmark = pytest.mark.django_db

PROJECTS_URL = "/api/v1/projects/"


def detail_url(project):
    return f"{PROJECTS_URL}{project.id}/"


def test_list_requires_authentication(api_client):
    res = api_client.get(PROJECTS_URL)
    body = res.json()
    assert res.status_code == 401
    assert body["statusCode"] == 401
    assert body["errorCode"] == "AUTH_ERROR"


def test_list_is_projected_for_the_callers_role(client_for, staff_user, board, make_project):
    make_project("Alpha", attributes={"dueDate": "2025-03-01", "budget": 500, "notes": "hidden"})

    res = client_for(staff_user).get(PROJECTS_URL)
    body = res.json()

    assert res.status_code == 200
    assert body["status"] == "success"
    row = body["data"]["results"][0]
    assert row["name"] == "Alpha"
    assert row["dueDate"] == "2025-03-01"
    assert "budget" not in row
    assert "notes" not in row
    assert "confidentialNotes" not in row
    assert [c["key"] for c in body["data"]["columns"]] == ["dueDate"]
    assert body["data"]["pagination"]["total"] == 1


def test_list_query_filters_and_pagination(client_for, manager_user, board, make_project):
    make_project("Alpha", status="completed", attributes={"budget": 100})
    make_project("Beta", status="pending", attributes={"budget": 250})
    make_project("Gamma", status="pending", attributes={"budget": 300})

    client = client_for(manager_user)

    res = client.get(PROJECTS_URL, {"status": "pending", "budget": "25"})
    assert [r["name"] for r in res.json()["data"]["results"]] == ["Beta"]

    res = client.get(PROJECTS_URL, {"limit": 1, "page": 2})
    data = res.json()["data"]
    assert len(data["results"]) == 1
    assert data["pagination"] == {"page": 2, "limit": 1, "total": 3, "totalPages": 3}


def test_admin_retrieve_includes_confidential_notes(client_for, admin_user, manager_user, board, make_project):
    project = make_project(confidential_notes="only admins")

    admin_row = client_for(admin_user).get(detail_url(project)).json()["data"]
    manager_row = client_for(manager_user).get(detail_url(project)).json()["data"]

    assert admin_row["confidentialNotes"] == "only admins"
    assert {"dueDate", "budget", "notes"} <= set(admin_row)
    assert "confidentialNotes" not in manager_row


def test_retrieve_unknown_project_is_404(client_for, staff_user):
    res = client_for(staff_user).get(f"{PROJECTS_URL}not-a-uuid/")
    assert res.status_code == 404
    assert res.json()["errorCode"] == "NOT_FOUND"


def test_create_project(client_for, manager_user, board):
    res = client_for(manager_user).post(
        PROJECTS_URL,
        {"name": "Website", "budget": 900, "notes": "dropped"},
        format="json",
    )
    body = res.json()

    assert res.status_code == 201
    assert body["data"]["name"] == "Website"
    assert body["data"]["status"] == "pending"
    assert body["data"]["budget"] == 900
    record = Project.objects.get(pk=body["data"]["id"])
    assert "notes" not in record.attributes


def test_create_without_name_is_rejected(client_for, admin_user, board):
    res = client_for(admin_user).post(PROJECTS_URL, {"status": "pending"}, format="json")
    assert res.status_code == 400
    assert res.json()["errorCode"] == "VALIDATION_ERROR"


def test_patch_silently_drops_view_only_keys(client_for, staff_user, board, make_project):
    project = make_project(attributes={"dueDate": "2025-01-01"})

    res = client_for(staff_user).patch(detail_url(project), {"dueDate": "2030-01-01"}, format="json")

    assert res.status_code == 200
    assert res.json()["data"]["dueDate"] == "2025-01-01"
    assert not AuditLog.objects.filter(entity="project", entity_id=str(project.id)).exists()


def test_patch_writes_editable_keys_and_audits(client_for, manager_user, board, make_project):
    project = make_project(attributes={"dueDate": "2025-01-01"})

    res = client_for(manager_user).patch(
        detail_url(project),
        {"dueDate": "2025-04-04", "status": "in_progress"},
        format="json",
        HTTP_USER_AGENT="pytest-agent",
        REMOTE_ADDR="10.1.2.3",
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["dueDate"] == "2025-04-04"
    assert data["status"] == "in_progress"

    entries = AuditLog.objects.filter(entity="project", entity_id=str(project.id), action="update")
    assert {e.field_name for e in entries} == {"dueDate", "status"}
    entry = entries.get(field_name="dueDate")
    assert entry.actor == manager_user
    assert entry.ip_address == "10.1.2.3"
    assert entry.user_agent == "pytest-agent"


def test_patch_with_blank_name_is_rejected(client_for, admin_user, board, make_project):
    project = make_project()
    res = client_for(admin_user).patch(detail_url(project), {"name": " "}, format="json")
    assert res.status_code == 400


def test_overlong_name_is_a_validation_error(client_for, admin_user, board, make_project):
    project = make_project()
    res = client_for(admin_user).patch(detail_url(project), {"name": "x" * 256}, format="json")
    assert res.status_code == 400
    assert res.json()["errorCode"] == "VALIDATION_ERROR"


def test_patch_with_non_object_body_is_rejected(client_for, admin_user, board, make_project):
    project = make_project()
    res = client_for(admin_user).patch(detail_url(project), ["name"], format="json")
    assert res.status_code == 400
    assert res.json()["errorCode"] == "VALIDATION_ERROR"


def test_confidential_endpoint_is_admin_only(client_for, admin_user, manager_user, make_project):
    project = make_project(confidential_notes="old")
    url = f"{detail_url(project)}confidential/"

    denied = client_for(manager_user).get(url)
    assert denied.status_code == 403
    assert denied.json()["errorCode"] == "PERMISSION_DENIED"

    admin = client_for(admin_user)
    assert admin.get(url).json()["data"] == {"confidentialNotes": "old"}

    res = admin.patch(url, {"confidentialNotes": "new"}, format="json")
    assert res.status_code == 200
    assert res.json()["data"] == {"confidentialNotes": "new"}
    project.refresh_from_db()
    assert project.confidential_notes == "new"


def test_confidential_notes_cannot_be_set_through_project_patch(client_for, admin_user, make_project):
    project = make_project(confidential_notes="keep")
    client_for(admin_user).patch(detail_url(project), {"confidentialNotes": "overwrite"}, format="json")
    project.refresh_from_db()
    assert project.confidential_notes == "keep"


def test_parameters_endpoint_lists_viewable_parameters(client_for, staff_user, admin_user, board):
    staff_keys = [p["key"] for p in client_for(staff_user).get("/api/v1/parameters/").json()["data"]]
    admin_keys = [p["key"] for p in client_for(admin_user).get("/api/v1/parameters/").json()["data"]]

    assert staff_keys == ["dueDate"]
    assert admin_keys == ["dueDate", "budget", "notes"]


def test_user_with_unknown_role_is_denied(client_for, make_user, board):
    user = make_user("STAFF")
    user.role = "GUEST"
    user.save(update_fields=["role"])

    res = client_for(user).get(PROJECTS_URL)
    assert res.status_code == 403

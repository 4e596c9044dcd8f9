import pytest

from app.core.models import AuditLog
from app.platform.flac.models import FieldPermission, ProjectParameter
from app.platform.flac.services import ParameterRegistry, normalize_options
from app.utils.exceptions import DuplicateKey, NotFound, ValidationError

pytestmark = pytest.mark.django_db


class CountingCache:
    def __init__(self):
        self.clears = 0

    def get(self, role, parameter_id):
        return None

    def set(self, role, parameter_id, caps):
        pass

    def get_role_map(self, role):
        return None

    def set_role_map(self, role, mapping):
        pass

    def clear(self):
        self.clears += 1


def test_normalize_options_splits_on_commas_and_newlines():
    assert normalize_options(" low, medium\n\nhigh ,") == "low,medium,high"
    assert normalize_options(" , \n") is None
    assert normalize_options(None) is None


def test_create_parameter_trims_and_defaults(registry, admin_user):
    parameter = registry.create_parameter(key="  dueDate ", label=" Due Date ", actor=admin_user)

    assert parameter.key == "dueDate"
    assert parameter.label == "Due Date"
    assert parameter.type == "text"
    assert parameter.order == 0
    assert parameter.options is None

    entry = AuditLog.objects.get(entity="parameter", action="create")
    assert entry.entity_id == str(parameter.id)
    assert entry.actor == admin_user


def test_create_select_parameter_normalises_options(registry):
    parameter = registry.create_parameter(key="priority", label="Priority", type="select", options="low,\n medium ,,high")
    assert parameter.options == "low,medium,high"
    assert parameter.option_list == ["low", "medium", "high"]


def test_options_ignored_for_non_select_types(registry):
    parameter = registry.create_parameter(key="cost", label="Cost", type="number", options="a,b")
    assert parameter.options is None


@pytest.mark.parametrize("key,label", [("", "Label"), ("key", "   "), (None, None)])
def test_create_requires_key_and_label(registry, key, label):
    with pytest.raises(ValidationError):
        registry.create_parameter(key=key, label=label)


def test_create_rejects_unknown_type(registry):
    with pytest.raises(ValidationError):
        registry.create_parameter(key="x", label="X", type="colour")


def test_create_rejects_reserved_key(registry):
    with pytest.raises(ValidationError):
        registry.create_parameter(key="status", label="Status")


@pytest.mark.parametrize("key", ["2024", "7"])
def test_create_rejects_all_digit_key(registry, key):
    with pytest.raises(ValidationError):
        registry.create_parameter(key=key, label="Year")


def test_create_accepts_key_with_digits_and_letters(registry):
    assert registry.create_parameter(key="q2024", label="Q").key == "q2024"


def test_key_and_label_lengths_are_checked(registry):
    with pytest.raises(ValidationError):
        registry.create_parameter(key="k" * 101, label="Long key")
    with pytest.raises(ValidationError):
        registry.create_parameter(key="short", label="l" * 201)
    assert not ProjectParameter.objects.exists()

    parameter = registry.create_parameter(key="k" * 100, label="l" * 200)
    with pytest.raises(ValidationError):
        registry.update_parameter(parameter.id, {"label": "l" * 201})
    with pytest.raises(ValidationError):
        registry.update_parameter(parameter.id, {"key": "2025"})


def test_create_duplicate_key(registry):
    registry.create_parameter(key="dueDate", label="Due Date")
    with pytest.raises(DuplicateKey):
        registry.create_parameter(key="dueDate", label="Another")


def test_list_orders_by_order_then_creation(registry):
    second = registry.create_parameter(key="b", label="B", order=1)
    third = registry.create_parameter(key="c", label="C", order=1)
    first = registry.create_parameter(key="a", label="A", order=0)

    assert [p.key for p in registry.list_parameters()] == [first.key, second.key, third.key]


def test_get_parameter_not_found(registry):
    with pytest.raises(NotFound):
        registry.get_parameter("8d0d4f6a-5b8e-4a53-9f0a-1f0f3d7f6a11")
    with pytest.raises(NotFound):
        registry.get_parameter("not-a-uuid")


def test_update_renames_key_and_audits(registry, admin_user):
    parameter = registry.create_parameter(key="due", label="Due")

    registry.update_parameter(parameter.id, {"key": "dueDate"}, actor=admin_user)

    parameter.refresh_from_db()
    assert parameter.key == "dueDate"
    entry = AuditLog.objects.get(entity="parameter", action="update", field_name="key")
    assert (entry.old_value, entry.new_value) == ("due", "dueDate")


def test_update_blank_key_is_ignored(registry):
    parameter = registry.create_parameter(key="due", label="Due")
    registry.update_parameter(parameter.id, {"key": "   ", "label": "Due Date"})

    parameter.refresh_from_db()
    assert parameter.key == "due"
    assert parameter.label == "Due Date"


def test_update_to_existing_key_is_duplicate(registry):
    registry.create_parameter(key="a", label="A")
    b = registry.create_parameter(key="b", label="B")

    with pytest.raises(DuplicateKey):
        registry.update_parameter(b.id, {"key": "a"})


def test_update_empty_label_or_bad_type(registry):
    parameter = registry.create_parameter(key="a", label="A")

    with pytest.raises(ValidationError):
        registry.update_parameter(parameter.id, {"label": "  "})
    with pytest.raises(ValidationError):
        registry.update_parameter(parameter.id, {"type": "blob"})


def test_update_missing_parameter(registry):
    with pytest.raises(NotFound):
        registry.update_parameter("8d0d4f6a-5b8e-4a53-9f0a-1f0f3d7f6a11", {"label": "x"})


def test_update_without_changes_writes_no_audit(registry):
    parameter = registry.create_parameter(key="a", label="A")
    registry.update_parameter(parameter.id, {"label": "A", "order": 0})
    assert not AuditLog.objects.filter(action="update").exists()


def test_delete_removes_permissions_but_keeps_project_values(registry, grant, make_project):
    parameter = registry.create_parameter(key="dueDate", label="Due Date")
    grant(parameter, "STAFF", view=True)
    project = make_project(attributes={"dueDate": "2025-01-01"})

    registry.delete_parameter(parameter.id)

    assert not ProjectParameter.objects.filter(key="dueDate").exists()
    assert not FieldPermission.objects.exists()
    project.refresh_from_db()
    assert project.attributes == {"dueDate": "2025-01-01"}
    assert AuditLog.objects.filter(entity="parameter", action="delete").count() == 1


def test_every_mutation_clears_the_permission_cache():
    spy = CountingCache()
    registry = ParameterRegistry(spy)

    parameter = registry.create_parameter(key="a", label="A")
    registry.update_parameter(parameter.id, {"label": "B"})
    registry.delete_parameter(parameter.id)

    assert spy.clears == 3

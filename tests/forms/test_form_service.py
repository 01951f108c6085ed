from __future__ import annotations

from datetime import datetime

import pytest

from conftest import make_principal
from youth_admin.core.enums import FieldType, FormCategory, FormStatus, ValidityUnit
from youth_admin.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from youth_admin.forms.model import FieldOptions, ValidityPolicy
from youth_admin.forms.service import FormService

NOW = datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def service(forms_repo):
    return FormService(forms_repo)


def _create(service, admin, **payload):
    body = {
        "name": "Medical Release",
        "category": "MEDICAL",
        "valid_for_value": 1,
        "valid_for_unit": "YEARS",
        "fields": [
            {"label": "About", "type": "SECTION", "help_text": "For $studentName"},
            {"label": "Allergies", "type": "LONG_TEXT"},
            {"label": "Shirt size", "type": "SELECT", "options": "S,M,L", "allow_other": True, "required": True},
        ],
    }
    body.update(payload)
    return service.create_form(principal=admin, payload=body)


def test_create_form_normalizes_fields(service, admin):
    form = _create(service, admin)

    assert form.name == "Medical Release"
    assert form.category == FormCategory.MEDICAL
    assert form.status == FormStatus.ACTIVE
    assert form.validity == ValidityPolicy(1, ValidityUnit.YEARS)
    assert form.created_by_id == admin.user_id
    assert [f.label for f in form.live_fields] == ["About", "Allergies", "Shirt size"]
    assert form.live_fields[2].options == FieldOptions(("S", "M", "L"), True)
    assert form.live_fields[1].options is None


def test_create_form_requires_a_name(service, admin):
    with pytest.raises(ValidationError, match="Form name is required."):
        service.create_form(principal=admin, payload={"name": "   "})


def test_unknown_category_falls_back_to_general(service, admin):
    form = _create(service, admin, category="PARTY")

    assert form.category == FormCategory.GENERAL


def test_permissions(service, admin):
    form = _create(service, admin)
    viewer = make_principal("forms_view")

    assert service.get_form(principal=viewer, form_id=form.form_id).form_id == form.form_id
    with pytest.raises(AuthorizationError):
        service.create_form(principal=viewer, payload={"name": "x"})
    with pytest.raises(AuthorizationError):
        service.archive_form(principal=make_principal("forms_edit"), form_id=form.form_id)
    with pytest.raises(AuthenticationError):
        service.list_forms(principal=None)


def test_get_missing_form(service, admin):
    with pytest.raises(NotFoundError):
        service.get_form(principal=admin, form_id=404)


def test_update_reorders_inserts_and_archives(service, admin):
    form = _create(service, admin)
    about, allergies, size = form.live_fields

    updated = service.update_form(
        principal=admin,
        form_id=form.form_id,
        payload={
            "name": "Medical Release 2026",
            "fields": [
                {"id": size.field_id, "label": "T-shirt size", "type": "SELECT", "options": ["S", "M"]},
                {"label": "Doctor phone", "type": "PHONE"},
                {"id": about.field_id, "label": "About", "type": "SECTION"},
            ],
            "removed_field_ids": [allergies.field_id],
        },
        now=NOW,
    )

    assert updated.name == "Medical Release 2026"
    assert [f.label for f in updated.live_fields] == ["T-shirt size", "Doctor phone", "About"]
    assert updated.live_fields[0].field_id == size.field_id
    assert updated.live_fields[0].options == FieldOptions(("S", "M"), False)
    assert updated.live_fields[1].field_type == FieldType.PHONE


def test_update_keeps_unlisted_fields_after_listed_ones(service, admin):
    form = _create(service, admin)
    about, allergies, size = form.live_fields

    updated = service.update_form(
        principal=admin,
        form_id=form.form_id,
        payload={"fields": [{"id": size.field_id, "label": "Shirt size", "type": "SELECT", "options": "S"}]},
        now=NOW,
    )

    assert [f.field_id for f in updated.live_fields] == [size.field_id, about.field_id, allergies.field_id]
    assert len({f.order for f in updated.live_fields}) == 3


def test_update_ignores_foreign_field_ids(service, admin):
    form = _create(service, admin)
    other = _create(service, admin, name="Other form")

    updated = service.update_form(
        principal=admin,
        form_id=form.form_id,
        payload={
            "fields": [{"id": other.live_fields[0].field_id, "label": "Hijack", "type": "SHORT_TEXT"}],
            "removed_field_ids": [other.live_fields[1].field_id],
        },
        now=NOW,
    )

    assert "Hijack" not in [f.label for f in updated.live_fields]
    assert len(service.get_form(principal=admin, form_id=other.form_id).live_fields) == 3


def test_update_validity_patch(service, admin):
    form = _create(service, admin)

    updated = service.update_form(principal=admin, form_id=form.form_id, payload={"valid_until": "2026-12-31"}, now=NOW)

    assert updated.validity == ValidityPolicy(valid_until=datetime(2026, 12, 31))


def test_update_rejects_overlong_validity(service, admin):
    form = _create(service, admin)

    with pytest.raises(ValidationError):
        service.update_form(
            principal=admin, form_id=form.form_id, payload={"valid_for_value": 100000, "valid_for_unit": "YEARS"}, now=NOW
        )
    assert service.get_form(principal=admin, form_id=form.form_id).validity == ValidityPolicy(1, ValidityUnit.YEARS)


def test_status_change_needs_forms_manage(service, admin):
    form = _create(service, admin)
    editor = make_principal("forms_edit")

    with pytest.raises(AuthorizationError):
        service.update_form(principal=editor, form_id=form.form_id, payload={"status": "ARCHIVED"}, now=NOW)
    renamed = service.update_form(principal=editor, form_id=form.form_id, payload={"name": "Renamed", "status": "ACTIVE"}, now=NOW)
    assert renamed.name == "Renamed"

    manager = make_principal("forms_manage")
    archived = service.update_form(principal=manager, form_id=form.form_id, payload={"status": "ARCHIVED"}, now=NOW)
    assert archived.status == FormStatus.ARCHIVED


def test_update_rejects_blank_name(service, admin):
    form = _create(service, admin)

    with pytest.raises(ValidationError):
        service.update_form(principal=admin, form_id=form.form_id, payload={"name": " "}, now=NOW)


def test_archive_form(service, admin):
    form = _create(service, admin)

    archived = service.archive_form(principal=admin, form_id=form.form_id)

    assert archived.is_archived


def test_variables_catalog(service):
    tokens = [v["token"] for v in service.variables(principal=make_principal("forms_view"))]

    assert "$studentName" in tokens
    assert "$eventLocation" in tokens

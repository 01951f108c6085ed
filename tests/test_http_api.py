from __future__ import annotations

import pytest

from youth_admin.core.enums import Role


@pytest.fixture
def admin_user(staff_repo):
    return staff_repo.add(username="boss", role=Role.ADMIN, password="s3cret!")


@pytest.fixture
def signed_in(client, admin_user):
    with client.session_transaction() as sess:
        sess["user_id"] = admin_user.user_id
    return client


def test_login_and_me(client, admin_user):
    resp = client.post("/api/login", json={"login": "boss", "password": "s3cret!"})

    assert resp.status_code == 200
    assert resp.get_json()["user"]["role"] == "ADMIN"
    me = client.get("/api/me").get_json()
    assert me["success"] is True
    assert me["user"]["username"] == "boss"


def test_failed_login_uses_error_envelope(client, admin_user):
    resp = client.post("/api/login", json={"username": "boss", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {
        "success": False,
        "error": "unauthenticated",
        "message": "Invalid username or password.",
    }


def test_protected_routes_need_a_session(client):
    resp = client.get("/api/teens")

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthenticated"


def test_logout_clears_session(signed_in):
    signed_in.post("/api/logout")

    assert signed_in.get("/api/me").status_code == 401


def test_non_object_json_is_rejected(signed_in):
    resp = signed_in.post("/api/forms", json=["not", "an", "object"])

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nothing-here")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_permission_catalog(signed_in):
    codes = [p["code"] for p in signed_in.get("/api/permissions").get_json()["permissions"]]

    assert "roster_view" in codes
    assert "staff_manage" in codes


def test_registration_is_public(client):
    resp = client.post(
        "/api/registrations",
        json={
            "first_name": "Noah",
            "last_name": "Kim",
            "dob": "2011-09-30",
            "email": "noah@example.com",
            "address_line1": "48 Pine Ave",
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62702",
            "parent_name": "Daniel Kim",
            "parent_email": "daniel@example.com",
            "parent_phone": "5553092200",
            "parent_relationship": "Father",
        },
    )

    body = resp.get_json()
    assert resp.status_code == 201
    assert body["teen_id"] == 1
    assert body["public_id"].startswith("T-")


def test_form_assignment_flow(signed_in, teens_repo):
    teen = teens_repo.add(first_name="Maya", last_name="Lopez")

    created = signed_in.post(
        "/api/forms",
        json={
            "name": "Retreat <Release>",
            "valid_for_value": 30,
            "fields": [
                {"label": "Shirt size", "type": "SELECT", "options": ["S", "M"], "allow_other": True, "required": True},
                {"label": "Notes", "type": "LONG_TEXT"},
            ],
        },
    )
    assert created.status_code == 201
    form = created.get_json()["form"]
    assert form["valid_for_unit"] == "DAYS"
    size_id = form["fields"][0]["id"]
    assert form["fields"][0]["options"] == {"options": ["S", "M"], "allowOther": True}

    assigned = signed_in.post("/api/forms/assignments", json={"teen_id": teen.teen_id, "form_id": form["id"]})
    assert assigned.status_code == 201
    assignment_id = assigned.get_json()["assignment"]["id"]

    again = signed_in.post("/api/forms/assignments", json={"teen_id": teen.teen_id, "form_id": form["id"]})
    assert again.status_code == 409
    assert again.get_json()["error"] == "already_assigned"

    submitted = signed_in.post(
        "/api/forms/submissions",
        json={"assignment_id": assignment_id, "data": {str(size_id): "__other__", f"{size_id}__other": "XL"}},
    )
    assert submitted.status_code == 201
    submission = submitted.get_json()["submission"]
    assert submission["expires_at"] is not None

    twice = signed_in.post("/api/forms/submissions", json={"assignment_id": assignment_id, "data": {str(size_id): "S"}})
    assert twice.status_code == 409
    assert twice.get_json()["error"] == "already_completed"

    overview = signed_in.get(f"/api/teens/{teen.teen_id}/forms").get_json()["assignments"]
    assert overview[0]["status"] == "COMPLETED"
    assert overview[0]["form"]["fields"][0]["value"] == "XL"

    printed = signed_in.get(f"/api/forms/submissions/{submission['id']}/print")
    html = printed.get_data(as_text=True)
    assert printed.status_code == 200
    assert "XL" in html
    assert "Maya Lopez" in html
    assert "Retreat &lt;Release&gt;" in html


def test_unassign_route(signed_in, teens_repo):
    teen = teens_repo.add()
    form = signed_in.post("/api/forms", json={"name": "Photo Release"}).get_json()["form"]
    assignment = signed_in.post(
        "/api/forms/assignments", json={"teen_id": teen.teen_id, "form_id": form["id"]}
    ).get_json()["assignment"]

    resp = signed_in.delete(f"/api/forms/assignments/{assignment['id']}")

    assert resp.status_code == 200
    assert resp.get_json()["assignment"]["archived_at"] is not None


def test_kiosk_routes(signed_in):
    checked_in = signed_in.post("/api/attendance", json={"teen_ids": [1, 2]}).get_json()
    checked_out = signed_in.post("/api/attendance", json={"action": "checkout", "teen_ids": [1]}).get_json()
    today = signed_in.get("/api/attendance").get_json()

    assert checked_in["created"] == 2
    assert checked_out["closed"] == 1
    assert sorted(r["teen_id"] for r in today["records"]) == [1, 2]


def test_staff_routes(signed_in):
    created = signed_in.post(
        "/api/staff",
        json={
            "email": "jess@example.com",
            "username": "jess",
            "first_name": "Jess",
            "last_name": "Doe",
            "password": "hunter22",
            "permissions": ["forms_edit"],
        },
    )
    user_id = created.get_json()["id"]

    patched = signed_in.patch(f"/api/staff/{user_id}", json={"permissions": ["forms_manage", "roster"]})
    archived = signed_in.post(f"/api/staff/{user_id}/archive", json={"reason": "Left"})

    assert created.status_code == 201
    assert patched.get_json()["user"]["permissions"] == ["forms_manage", "roster_manage"]
    assert archived.get_json()["user"]["archived_reason"] == "Left"
    assert len(signed_in.get("/api/staff").get_json()["staff"]) == 1
    assert len(signed_in.get("/api/staff?include_archived=1").get_json()["staff"]) == 2

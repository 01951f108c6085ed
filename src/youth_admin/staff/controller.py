from __future__ import annotations

from flask import Flask, session

from ..common.http import current_principal, json_body, ok, query_flag
from ..container import Container
from ..core.exceptions import AuthenticationError
from ..permissions.model import ALL_PERMISSIONS, describe
from ..permissions.service import permission_codes
from .model import StaffUser


def staff_json(user: StaffUser) -> dict:
    return {
        "id": user.user_id,
        "email": user.email,
        "username": user.username,
        "role": user.role,
        "permissions": permission_codes(user.permissions),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "display_name": user.display_name,
        "full_name": user.full_name,
        "title": user.title,
        "phone": user.phone,
        "bio": user.bio,
        "created_at": user.created_at,
        "archived_at": user.archived_at,
        "archived_reason": user.archived_reason,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        s_user = container.auth_service.authenticate(body.get("login") or body.get("username") or "", body.get("password") or "")

        session.clear()
        session.permanent = bool(body.get("remember"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        return ok(user={"id": s_user.user_id, "full_name": s_user.full_name, "role": s_user.role})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/me", methods=["GET"], endpoint="me")
    def me():
        user = container.staff_service.get_own_profile(principal=current_principal())
        return ok(user=staff_json(user))

    @app.route("/api/me", methods=["PATCH"], endpoint="update_me")
    def update_me():
        user = container.staff_service.update_own_profile(principal=current_principal(), changes=json_body())
        return ok(user=staff_json(user))

    @app.route("/api/permissions", methods=["GET"], endpoint="permission_catalog")
    def permission_catalog():
        if current_principal() is None:
            raise AuthenticationError("Sign in to continue.")
        return ok(permissions=[describe(p) for p in ALL_PERMISSIONS])

    @app.route("/api/staff", methods=["GET"], endpoint="list_staff")
    def list_staff():
        users = container.staff_service.list_staff(
            principal=current_principal(),
            include_archived=query_flag("include_archived"),
        )
        return ok(staff=[staff_json(u) for u in users])

    @app.route("/api/staff", methods=["POST"], endpoint="create_staff")
    def create_staff():
        body = json_body()
        user_id = container.staff_service.create_staff(
            principal=current_principal(),
            email=body.get("email"),
            username=body.get("username"),
            first_name=body.get("first_name"),
            last_name=body.get("last_name"),
            password=body.get("password"),
            role=body.get("role") or "STAFF",
            permissions=body.get("permissions"),
        )
        return ok(201, id=user_id)

    @app.route("/api/staff/<int:user_id>", methods=["GET"], endpoint="get_staff")
    def get_staff(user_id: int):
        user = container.staff_service.get_staff(principal=current_principal(), user_id=user_id)
        return ok(user=staff_json(user))

    @app.route("/api/staff/<int:user_id>", methods=["PATCH"], endpoint="update_staff")
    def update_staff(user_id: int):
        user = container.staff_service.update_staff(principal=current_principal(), user_id=user_id, changes=json_body())
        return ok(user=staff_json(user))

    @app.route("/api/staff/<int:user_id>/archive", methods=["POST"], endpoint="archive_staff")
    def archive_staff(user_id: int):
        user = container.staff_service.archive_staff(
            principal=current_principal(),
            user_id=user_id,
            reason=json_body().get("reason"),
        )
        return ok(user=staff_json(user))

    @app.route("/api/staff/<int:user_id>/restore", methods=["POST"], endpoint="restore_staff")
    def restore_staff(user_id: int):
        user = container.staff_service.restore_staff(principal=current_principal(), user_id=user_id)
        return ok(user=staff_json(user))

    @app.route("/api/staff/<int:user_id>", methods=["DELETE"], endpoint="delete_staff")
    def delete_staff(user_id: int):
        container.staff_service.delete_staff(principal=current_principal(), user_id=user_id)
        return ok()

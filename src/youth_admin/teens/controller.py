from __future__ import annotations

from flask import Flask, request

from ..common.http import current_principal, json_body, ok, query_flag
from ..container import Container
from .model import Teen


def teen_json(teen: Teen) -> dict:
    return {
        "id": teen.teen_id,
        "public_id": teen.public_id,
        "first_name": teen.first_name,
        "last_name": teen.last_name,
        "dob": teen.dob,
        "email": teen.email,
        "phone": teen.phone,
        "address_line1": teen.address_line1,
        "address_line2": teen.address_line2,
        "city": teen.city,
        "state": teen.state,
        "postal_code": teen.postal_code,
        "parish": teen.parish,
        "emergency_contact_name": teen.emergency_contact_name,
        "emergency_contact_phone": teen.emergency_contact_phone,
        "parent_name": teen.parent_name,
        "parent_email": teen.parent_email,
        "parent_phone": teen.parent_phone,
        "parent_relationship": teen.parent_relationship,
        "registration_status": teen.registration_status,
        "registration_data": teen.registration_data,
        "created_at": teen.created_at,
        "archived_at": teen.archived_at,
        "archived_reason": teen.archived_reason,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/registrations", methods=["POST"], endpoint="register_teen")
    def register_teen():
        teen = container.teen_service.register(json_body())
        return ok(201, teen_id=teen.teen_id, public_id=teen.public_id)

    @app.route("/api/teens", methods=["GET"], endpoint="list_teens")
    def list_teens():
        teens = container.teen_service.list_teens(
            principal=current_principal(),
            search=request.args.get("search"),
            status=request.args.get("status"),
            include_archived=query_flag("include_archived"),
        )
        return ok(teens=[teen_json(t) for t in teens])

    @app.route("/api/teens/<int:teen_id>", methods=["GET"], endpoint="get_teen")
    def get_teen(teen_id: int):
        teen = container.teen_service.get_teen(principal=current_principal(), teen_id=teen_id)
        return ok(teen=teen_json(teen))

    @app.route("/api/teens/<int:teen_id>", methods=["PATCH"], endpoint="update_teen")
    def update_teen(teen_id: int):
        teen = container.teen_service.update_teen(principal=current_principal(), teen_id=teen_id, changes=json_body())
        return ok(teen=teen_json(teen))

    @app.route("/api/teens/<int:teen_id>/archive", methods=["POST"], endpoint="archive_teen")
    def archive_teen(teen_id: int):
        teen = container.teen_service.archive_teen(
            principal=current_principal(),
            teen_id=teen_id,
            reason=json_body().get("reason"),
        )
        return ok(teen=teen_json(teen))

    @app.route("/api/teens/<int:teen_id>/restore", methods=["POST"], endpoint="restore_teen")
    def restore_teen(teen_id: int):
        teen = container.teen_service.restore_teen(principal=current_principal(), teen_id=teen_id)
        return ok(teen=teen_json(teen))

    @app.route("/api/teens/<int:teen_id>", methods=["DELETE"], endpoint="delete_teen")
    def delete_teen(teen_id: int):
        container.teen_service.delete_teen(principal=current_principal(), teen_id=teen_id)
        return ok()

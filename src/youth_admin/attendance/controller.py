from __future__ import annotations

from flask import Flask

from ..common.http import current_principal, json_body, ok
from ..container import Container
from .model import AttendanceRecord


def record_json(record: AttendanceRecord) -> dict:
    return {
        "id": record.attendance_id,
        "teen_id": record.teen_id,
        "check_in_at": record.check_in_at,
        "check_out_at": record.check_out_at,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_today")
    def attendance_today():
        records = container.attendance_service.today(principal=current_principal())
        return ok(records=[record_json(r) for r in records])

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_action")
    def attendance_action():
        body = json_body()
        teen_ids = body.get("teen_ids")
        if body.get("action") == "checkout":
            closed = container.attendance_service.check_out(principal=current_principal(), teen_ids=teen_ids)
            return ok(closed=closed)
        created = container.attendance_service.check_in(principal=current_principal(), teen_ids=teen_ids)
        return ok(created=created)

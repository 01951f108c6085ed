from __future__ import annotations

from flask import Flask, render_template

from ..common.http import current_principal, json_body, ok
from ..container import Container
from .model import FormAssignment, FormDefinition, FormField, FormSubmission
from .service import AssignmentView, FieldView


def field_json(field: FormField) -> dict:
    return {
        "id": field.field_id,
        "label": field.label,
        "type": field.field_type,
        "required": field.required,
        "help_text": field.help_text,
        "options": field.options.to_json() if field.options else None,
        "order": field.order,
    }


def form_json(form: FormDefinition) -> dict:
    return {
        "id": form.form_id,
        "name": form.name,
        "description": form.description,
        "status": form.status,
        "category": form.category,
        "valid_for_value": form.validity.valid_for_value,
        "valid_for_unit": form.validity.valid_for_unit,
        "valid_until": form.validity.valid_until,
        "validity": form.validity.describe(),
        "created_at": form.created_at,
        "fields": [field_json(f) for f in form.live_fields],
    }


def assignment_json(assignment: FormAssignment) -> dict:
    return {
        "id": assignment.assignment_id,
        "form_id": assignment.form_id,
        "teen_id": assignment.teen_id,
        "assigned_by_id": assignment.assigned_by_id,
        "due_at": assignment.due_at,
        "required": assignment.required,
        "created_at": assignment.created_at,
        "completed_at": assignment.completed_at,
        "archived_at": assignment.archived_at,
    }


def submission_json(submission: FormSubmission) -> dict:
    return {
        "id": submission.submission_id,
        "assignment_id": submission.assignment_id,
        "form_id": submission.form_id,
        "teen_id": submission.teen_id,
        "submitted_by_id": submission.submitted_by_id,
        "data": submission.data,
        "submitted_at": submission.submitted_at,
        "expires_at": submission.expires_at,
    }


def _field_view_json(view: FieldView) -> dict:
    return {**field_json(view.field), "label": view.label, "help_text": view.help_text, "value": view.value}


def _assignment_view_json(view: AssignmentView) -> dict:
    return {
        **assignment_json(view.assignment),
        "status": view.status,
        "form": {**form_json(view.form), "fields": [_field_view_json(f) for f in view.fields]},
        "submission": submission_json(view.submission) if view.submission else None,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/forms", methods=["GET"], endpoint="list_forms")
    def list_forms():
        forms = container.form_service.list_forms(principal=current_principal())
        return ok(forms=[form_json(f) for f in forms])

    @app.route("/api/forms", methods=["POST"], endpoint="create_form")
    def create_form():
        form = container.form_service.create_form(principal=current_principal(), payload=json_body())
        return ok(201, form=form_json(form))

    @app.route("/api/forms/variables", methods=["GET"], endpoint="form_variables")
    def form_variables():
        return ok(variables=container.form_service.variables(principal=current_principal()))

    @app.route("/api/forms/<int:form_id>", methods=["GET"], endpoint="get_form")
    def get_form(form_id: int):
        form = container.form_service.get_form(principal=current_principal(), form_id=form_id)
        return ok(form=form_json(form))

    @app.route("/api/forms/<int:form_id>", methods=["PATCH"], endpoint="update_form")
    def update_form(form_id: int):
        form = container.form_service.update_form(principal=current_principal(), form_id=form_id, payload=json_body())
        return ok(form=form_json(form))

    @app.route("/api/forms/<int:form_id>", methods=["DELETE"], endpoint="archive_form")
    def archive_form(form_id: int):
        form = container.form_service.archive_form(principal=current_principal(), form_id=form_id)
        return ok(form=form_json(form))

    @app.route("/api/forms/assignments", methods=["POST"], endpoint="assign_form")
    def assign_form():
        body = json_body()
        assignment = container.assignment_service.assign(
            principal=current_principal(),
            teen_id=body.get("teen_id"),
            form_id=body.get("form_id"),
            due_at=body.get("due_at"),
            required=body.get("required") is not False,
            allow_reassign=body.get("allow_reassign") is True,
        )
        return ok(201, assignment=assignment_json(assignment))

    @app.route("/api/forms/assignments/<int:assignment_id>", methods=["DELETE"], endpoint="unassign_form")
    def unassign_form(assignment_id: int):
        assignment = container.assignment_service.unassign(principal=current_principal(), assignment_id=assignment_id)
        return ok(assignment=assignment_json(assignment))

    @app.route("/api/forms/submissions", methods=["POST"], endpoint="submit_form")
    def submit_form():
        body = json_body()
        submission = container.assignment_service.submit(
            principal=current_principal(),
            assignment_id=body.get("assignment_id"),
            data=body.get("data"),
        )
        return ok(201, submission=submission_json(submission))

    @app.route("/api/forms/submissions/<int:submission_id>/print", methods=["GET"], endpoint="print_submission")
    def print_submission(submission_id: int):
        printable = container.assignment_service.printable(principal=current_principal(), submission_id=submission_id)
        return render_template("forms/printable.html", printable=printable)

    @app.route("/api/teens/<int:teen_id>/forms", methods=["GET"], endpoint="teen_forms")
    def teen_forms(teen_id: int):
        views = container.assignment_service.teen_overview(principal=current_principal(), teen_id=teen_id)
        return ok(assignments=[_assignment_view_json(v) for v in views])

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError, ValidationError
from ..permissions.model import Principal

logger = logging.getLogger(__name__)


def install_error_handlers(app: Flask) -> None:
    """Render every failure as ``{"success": false, "error", "message"}``."""

    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        return jsonify({"success": False, "error": e.code, "message": str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        code = (e.name or "error").lower().replace(" ", "_")
        return jsonify({"success": False, "error": code, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "server_error", "message": "Something went wrong."}), 500


def install_principal_loader(app: Flask, load_principal: Callable[[Optional[int]], Optional[Principal]]) -> None:
    """Resolve the signed-in staff account once per request into ``g.principal``."""

    @app.before_request
    def _load_principal():
        g.principal = load_principal(session.get("user_id"))


def current_principal() -> Optional[Principal]:
    return g.get("principal")


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body.")
    return body


def query_flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes")


def to_jsonable(value: Any) -> Any:
    """Convert enums and datetimes inside plain dict/list payloads."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def ok(status: int = 200, **payload: Any):
    return jsonify({"success": True, **to_jsonable(payload)}), status

from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .common.http import install_error_handlers, install_principal_loader
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_admin_user, list_tables
from .database.connection import DBConfig
from .forms.controller import register as register_forms
from .staff.controller import register as register_staff
from .teens.controller import register as register_teens

logger = logging.getLogger(__name__)


def _prepare_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config)
        ensure_admin_user(
            db_config,
            email=getattr(settings, "ADMIN_EMAIL", ""),
            username=getattr(settings, "ADMIN_USERNAME", ""),
            password=getattr(settings, "ADMIN_PASSWORD", ""),
        )
        logger.info("seed ready")


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Passing a ready ``container`` skips database bootstrap entirely; tests use
    this to run the HTTP layer over in-memory repositories.
    """

    load_dotenv(override=False)
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_DAYS"] = int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS))
    app.permanent_session_lifetime = timedelta(days=app.config["SESSION_DAYS"])

    if container is None:
        db_config = dict(getattr(settings, "DB_CONFIG"))
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())
        _prepare_database(settings, db_config)
        container = build_container(db_config=db_config)

    install_error_handlers(app)
    install_principal_loader(app, container.auth_service.load_principal)

    register_staff(app, container)
    register_teens(app, container)
    register_attendance(app, container)
    register_forms(app, container)

    return app

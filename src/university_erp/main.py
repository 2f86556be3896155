from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from .common.web import error
from .config import get_settings_module
from .container import Container, build_container_from_settings
from .core.constants import DEFAULT_SESSION_DAYS
from .core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .audits.controller import register as register_audits
from .billing.controller import register as register_billing
from .courses.controller import register as register_courses
from .leave.controller import register as register_leave
from .programs.controller import register as register_programs
from .records.controller import register as register_records
from .registrations.controller import register as register_registrations
from .reports.controller import register as register_reports
from .transcripts.controller import register as register_transcripts
from .users.controller import register as register_users
from .workflows.controller import register as register_workflows

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"

ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def register_error_handlers(app: Flask) -> None:
    for exc_class, status in ERROR_STATUS:
        app.register_error_handler(exc_class, lambda exc, status=status: error(str(exc), status))

    @app.errorhandler(DomainError)
    def domain_error(exc: DomainError):
        return error(str(exc), 400)

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        return error(exc.description or exc.name, exc.code or 500)


def register_routes(app: Flask, container: Container) -> None:
    register_users(app, container)
    register_courses(app, container)
    register_programs(app, container)
    register_registrations(app, container)
    register_records(app, container)
    register_audits(app, container)
    register_transcripts(app, container)
    register_billing(app, container)
    register_leave(app, container)
    register_workflows(app, container)
    register_reports(app, container)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.json.sort_keys = False
    app.permanent_session_lifetime = timedelta(days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS)))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(
        "Starting with settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if getattr(settings, "AUTO_INIT_DB", False):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
    if getattr(settings, "AUTO_SEED_DB", False):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")

    register_error_handlers(app)
    register_routes(app, build_container_from_settings(settings))
    return app

from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, send_from_directory

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.exceptions import NotFoundError
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .documents.controller import register as register_documents
from .projects.controller import register as register_projects
from .reports.controller import register as register_reports
from .requests.controller import register as register_requests
from .storage.attachments import project_id_from_key
from .teams.controller import register as register_teams
from .updates.controller import register as register_updates
from .users.controller import register as register_users
from .web.auth import current_actor, login_required
from .web.errors import register_error_handlers
from .web.responses import ok

REPO_ROOT = Path(__file__).resolve().parents[3]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["UPLOAD_FOLDER"] = str(getattr(settings, "UPLOAD_FOLDER", REPO_ROOT / "uploads"))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH", 50 * 1024 * 1024))
    app.config["SESSION_DAYS"] = int(getattr(settings, "SESSION_DAYS", 7))
    app.config["DEFAULT_PAGE_LIMIT"] = int(getattr(settings, "DEFAULT_PAGE_LIMIT", 10))
    app.permanent_session_lifetime = timedelta(days=app.config["SESSION_DAYS"])

    if container is None:
        # Helpful startup info when the app talks to an unexpected database.
        if app.config["DEBUG"]:
            app.logger.info(
                "[buildtrack] settings=%s db=%s@%s:%s/%s",
                settings_module,
                db_config.get("user"),
                db_config.get("host"),
                db_config.get("port", 3306),
                db_config.get("database"),
            )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            app.logger.info("[buildtrack] schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
            app.logger.info("[buildtrack] demo users ready")

        container = build_container(db_config=db_config, upload_folder=app.config["UPLOAD_FOLDER"])

    app.extensions["buildtrack"] = container
    register_error_handlers(app)

    @app.get("/api/health")
    def health():
        return ok({"status": "ok"})

    @app.get("/uploads/<path:key>")
    @login_required
    def uploaded_file(key: str):
        # Attachments follow the visibility of the project they were filed under.
        project_id = project_id_from_key(key)
        if project_id is None or not container.visibility.scope_for(current_actor()).allows(project_id):
            raise NotFoundError("File")
        return send_from_directory(app.config["UPLOAD_FOLDER"], key)

    register_users(app, container)
    register_projects(app, container)
    register_teams(app, container)
    register_requests(app, container)
    register_updates(app, container)
    register_attendance(app, container)
    register_documents(app, container)
    register_reports(app, container)
    register_dashboard(app, container)

    return app

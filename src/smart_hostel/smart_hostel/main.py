from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import register_error_handlers
from .core.constants import DEFAULT_CURFEW_TIME
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .container import build_container
from .academic_calendar.controller import register as register_calendar
from .attendance.controller import register as register_attendance
from .gate.controller import register as register_gate
from .leaves.controller import register as register_leaves
from .reports.controller import register as register_reports
from .scoring.controller import register as register_ml
from .stats.controller import register as register_stats
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def create_app() -> Flask:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["SESSION_DAYS"] = int(getattr(settings, "SESSION_DAYS", 7))
    app.config["CURFEW_TIME"] = getattr(settings, "CURFEW_TIME", DEFAULT_CURFEW_TIME)

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    auto_init_db = bool(getattr(settings, "AUTO_INIT_DB", False))
    auto_seed_db = bool(getattr(settings, "AUTO_SEED_DB", False))
    if auto_init_db:
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
    if auto_seed_db:
        seed_path = Path(__file__).resolve().parents[3] / "database" / "seed.sql"
        apply_seed_sql(db_config, seed_path=seed_path)
        ensure_demo_users(db_config)
        logger.info("demo seed ready")

    container = build_container(db_config=db_config, curfew_time=app.config["CURFEW_TIME"])

    register_error_handlers(app)
    register_users(app, container)
    register_attendance(app, container)
    register_calendar(app, container)
    register_leaves(app, container)
    register_gate(app, container)
    register_stats(app, container)
    register_ml(app, container)
    register_reports(app, container)

    return app

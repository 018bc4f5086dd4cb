from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import build_container
from .core.constants import DEFAULT_PLANNING_MONTHS
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .logging_config import configure_logging
from .notifications.notifier import build_notifier
from .planning.controller import register as register_planning
from .shifts.controller import register as register_shifts
from .vacations.controller import register as register_vacations

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(app, level_name=getattr(settings, "LOG_LEVEL", None))
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        logger.info("Demo seed ready")

    container = build_container(
        db_config=db_config,
        notifier=build_notifier(settings),
        planning_months=int(getattr(settings, "PLANNING_MONTHS", DEFAULT_PLANNING_MONTHS)),
    )

    register_vacations(app, container)
    register_planning(app, container)
    register_shifts(app, container)

    return app

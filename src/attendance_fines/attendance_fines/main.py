from __future__ import annotations

import importlib
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .checkin.controller import register as register_checkin
from .container import Container, build_container
from .core.constants import (
    DEFAULT_OFFICER_FINE,
    DEFAULT_RECONCILE_INTERVAL_SECONDS,
    DEFAULT_STUDENT_FINE,
    QR_RELEASE_LEAD_MINUTES,
)
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_members, list_tables
from .events.controller import register as register_events
from .fines.controller import register as register_fines
from .fines.model import FineSettings
from .members.controller import register as register_members

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        default_settings = FineSettings(
            student_fine=Decimal(str(getattr(settings, "DEFAULT_STUDENT_FINE", DEFAULT_STUDENT_FINE))),
            officer_fine=Decimal(str(getattr(settings, "DEFAULT_OFFICER_FINE", DEFAULT_OFFICER_FINE))),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_members(
                db_config,
                student_fine=default_settings.student_fine,
                officer_fine=default_settings.officer_fine,
            )
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            default_settings=default_settings,
            release_lead_minutes=int(getattr(settings, "QR_RELEASE_LEAD_MINUTES", QR_RELEASE_LEAD_MINUTES)),
            reconcile_interval_seconds=float(
                getattr(settings, "RECONCILE_INTERVAL_SECONDS", DEFAULT_RECONCILE_INTERVAL_SECONDS)
            ),
        )

        if bool(getattr(settings, "ENABLE_RECONCILE_WORKER", False)):
            container.worker.start()

    app.extensions["attendance_fines"] = container

    register_members(app, container)
    register_checkin(app, container)
    register_events(app, container)
    register_fines(app, container)

    return app

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .alumnos.controller import register as register_alumnos
from .auth.controller import register as register_auth
from .common.web import fail
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_HOURS
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_user, list_tables
from .database.connection import DBConfig
from .familiares.controller import register as register_familiares
from .grados.controller import register as register_grados

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_user(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            session_hours=int(getattr(settings, "SESSION_HOURS", DEFAULT_SESSION_HOURS)),
        )

    register_auth(app, container)
    register_alumnos(app, container)
    register_familiares(app, container)
    register_grados(app, container)
    register_dashboard(app, container)

    @app.errorhandler(404)
    def not_found(_e):
        return fail("Ruta no encontrada", 404, redirect="/")

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return fail("Método no permitido", 405)

    return app

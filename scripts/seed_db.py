from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.registro_alumnos.registro_alumnos.database.bootstrap import apply_seed_sql, ensure_demo_user
from src.registro_alumnos.registro_alumnos.database.connection import DBConfig

logger = logging.getLogger("seed_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_user(db_config)
    logger.info("Seeded database -> %s", DBConfig.from_dict(db_config).describe())


if __name__ == "__main__":
    main()

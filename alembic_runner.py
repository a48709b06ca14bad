"""
Alembic migration runner for application startup.
This module provides functions to run Alembic migrations programmatically.
"""
import logging
from pathlib import Path

from sqlalchemy.exc import OperationalError
from alembic import command
from alembic.config import Config
from database import DATABASE_URL

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


def _alembic_config() -> Config:
    alembic_cfg = Config(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BASE_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
    return alembic_cfg


def run_migrations() -> None:
    """
    Run Alembic migrations to head.
    Called during application startup; errors propagate so the caller can fall back.
    """
    try:
        logger.info("Running Alembic migrations...")
        command.upgrade(_alembic_config(), "head")
        logger.info("Alembic migrations completed successfully")
    except OperationalError as e:
        logger.error(f"Failed to connect to database during migrations: {e}")
        raise

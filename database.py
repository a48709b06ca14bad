"""
Engine, session factory and declarative Base.
Connection settings come from config.settings (environment or .env).
"""
import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool

from config import settings

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_SQLITE_PATH = BASE_DIR / "herdtrack.db"

# Some hosting environments prepend "DATABASE_URL=" to the value
PREFIX = "DATABASE_URL="


def resolve_database_url(raw: str) -> str:
    """Clean up the configured URL, falling back to a local SQLite file when it is empty."""
    url = (raw or "").strip()
    if url.startswith(PREFIX):
        url = url[len(PREFIX):].strip()
    if not url:
        url = f"sqlite:///{DEFAULT_SQLITE_PATH.as_posix()}"
        logger.warning(f"DATABASE_URL not set. Falling back to SQLite at {DEFAULT_SQLITE_PATH}")
    return url


def engine_options(url: str) -> dict:
    options = {
        "echo": False,
        "future": True,
        "pool_pre_ping": True,
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            {
                "poolclass": QueuePool,
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
                "pool_timeout": settings.DB_POOL_TIMEOUT,
                "pool_recycle": settings.DB_POOL_RECYCLE,
            }
        )
    return options


DATABASE_URL = resolve_database_url(settings.DATABASE_URL)

engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

Base = declarative_base()

if DATABASE_URL.startswith("sqlite"):
    logger.info(f"Database configured with SQLite | url: {DATABASE_URL}")
else:
    logger.info(
        f"Database connection pool configured | size: {settings.DB_POOL_SIZE} | "
        f"max_overflow: {settings.DB_MAX_OVERFLOW}"
    )

from sqlalchemy.pool import QueuePool

import database
from config import settings


def test_database_url_prefix_is_stripped():
    url = database.resolve_database_url(" DATABASE_URL=mysql+pymysql://u:p@db/herd ")

    assert url == "mysql+pymysql://u:p@db/herd"


def test_empty_database_url_falls_back_to_sqlite():
    url = database.resolve_database_url("")

    assert url == f"sqlite:///{database.DEFAULT_SQLITE_PATH.as_posix()}"


def test_pool_sizing_comes_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "DB_POOL_SIZE", 3)
    monkeypatch.setattr(settings, "DB_MAX_OVERFLOW", 4)

    options = database.engine_options("postgresql://u:p@db/herd")

    assert options["poolclass"] is QueuePool
    assert (options["pool_size"], options["max_overflow"]) == (3, 4)
    assert "connect_args" not in options


def test_sqlite_engine_allows_cross_thread_use():
    options = database.engine_options("sqlite:///herd.db")

    assert options["connect_args"] == {"check_same_thread": False}
    assert "poolclass" not in options

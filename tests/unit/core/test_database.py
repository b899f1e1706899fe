# tests/unit/core/test_database.py
from stocksync.database import normalize_database_url


def test_plain_postgres_url_gets_async_driver():
    assert normalize_database_url("postgresql://u:p@db/stock") == "postgresql+asyncpg://u:p@db/stock"


def test_plain_sqlite_url_gets_async_driver():
    assert normalize_database_url("sqlite:///./stocksync.db") == "sqlite+aiosqlite:///./stocksync.db"


def test_async_urls_are_left_alone():
    assert normalize_database_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"
    assert normalize_database_url("postgresql+asyncpg://db/x") == "postgresql+asyncpg://db/x"

"""Tests for habitta.db.connection engine options."""

from habitta.config import DBConfig
from habitta.db.connection import engine_options, is_sqlite_url


def test_sqlite_url_detection():
    assert is_sqlite_url("sqlite+aiosqlite:///:memory:")
    assert not is_sqlite_url("postgresql+asyncpg://u:p@localhost/habitta")


def test_sqlite_gets_no_pool_settings():
    options = engine_options(DBConfig(url="sqlite+aiosqlite:///habitta.db", echo=True))

    assert options == {"echo": True}


def test_server_database_gets_pool_settings():
    options = engine_options(
        DBConfig(url="postgresql+asyncpg://u:p@localhost/habitta", pool_size=5, pool_timeout=10)
    )

    assert options["pool_size"] == 5
    assert options["max_overflow"] == 20
    assert options["pool_timeout"] == 10
    assert options["pool_pre_ping"] is True

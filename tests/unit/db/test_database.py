from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa

from webscaffold.core.config import Config, DatabaseSettings
from webscaffold.db.database import DatabaseOptions, build_url, normalize_driver, open_database
from webscaffold.exceptions import DatabaseOpenError

pytestmark = pytest.mark.unit


def _config(**database: str) -> Config:
    cfg = Config.for_testing()
    cfg.database = DatabaseSettings(**database)
    return cfg


@pytest.mark.parametrize(
    ("alias", "expected"),
    [("SQLite", "sqlite"), ("sqlite3", "sqlite"), ("postgres", "postgresql"), ("mariadb", "mysql")],
)
def test_normalize_driver(alias: str, expected: str) -> None:
    assert normalize_driver(alias) == expected


def test_unsupported_driver() -> None:
    with pytest.raises(DatabaseOpenError, match="unsupported driver"):
        open_database(_config(driver="oracle", name="x"))


def test_none_config_is_rejected() -> None:
    with pytest.raises(DatabaseOpenError, match="config is required"):
        open_database(None)


def test_postgres_url_defaults_to_required_ssl() -> None:
    options = DatabaseOptions.from_config(
        _config(driver="postgres", host="db", port="5432", name="app", username="u", password="p", ssl_mode="")
    )

    url = build_url(options)

    assert options.ssl_mode == "require"
    assert url.drivername == "postgresql+psycopg"
    assert url.host == "db"
    assert url.port == 5432
    assert url.query["sslmode"] == "require"


def test_mysql_url_sets_charset() -> None:
    url = build_url(DatabaseOptions.from_config(_config(driver="mysql", host="db", name="app")))

    assert url.drivername == "mysql+pymysql"
    assert url.query["charset"] == "utf8mb4"
    assert url.port is None


def test_sqlite_url_has_no_ssl() -> None:
    options = DatabaseOptions.from_config(_config(driver="sqlite", name="file:app.db?mode=rwc"))

    url = build_url(options)

    assert options.ssl_mode == ""
    assert url.query["uri"] == "true"


def test_invalid_port_is_reported() -> None:
    options = DatabaseOptions.from_config(_config(driver="postgres", host="db", port="abc", name="app"))

    with pytest.raises(DatabaseOpenError, match="invalid port"):
        build_url(options)


def test_file_database_uses_wal_and_foreign_keys(tmp_path: Path) -> None:
    engine = open_database(_config(driver="sqlite", name=str(tmp_path / "app.db")))
    try:
        with engine.connect() as conn:
            journal = conn.execute(sa.text("PRAGMA journal_mode")).scalar()
            foreign_keys = conn.execute(sa.text("PRAGMA foreign_keys")).scalar()
    finally:
        engine.dispose()

    assert str(journal).lower() == "wal"
    assert foreign_keys == 1


def test_in_memory_database_survives_between_connections(engine: sa.engine.Engine) -> None:
    with engine.begin() as conn:
        conn.execute(sa.text("CREATE TABLE sample (id INTEGER PRIMARY KEY)"))
        conn.execute(sa.text("INSERT INTO sample (id) VALUES (1)"))

    with engine.connect() as conn:
        assert conn.execute(sa.text("SELECT COUNT(*) FROM sample")).scalar() == 1


def test_unreachable_server_is_reported() -> None:
    cfg = _config(driver="sqlite", name=str(Path("/nonexistent-dir/sub/app.db")))

    with pytest.raises(DatabaseOpenError, match="failed to open sqlite connection"):
        open_database(cfg)

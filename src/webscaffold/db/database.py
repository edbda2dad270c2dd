"""Open and tune the SQL engine described by :class:`Config`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import sqlalchemy as sa
from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import QueuePool

from ..core.config import Config
from ..core.constants import DRIVER_SQLITE
from ..exceptions import DatabaseOpenError

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf8mb4"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_SSL_MODE = "require"

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)

# Server pools: 5 idle connections, 25 open at most, recycled every 5 minutes.
SERVER_POOL_SIZE = 5
SERVER_MAX_OVERFLOW = 20
SERVER_POOL_RECYCLE = timedelta(minutes=5)

_DRIVER_ALIASES = {
    "sqlite": DRIVER_SQLITE,
    "sqlite3": DRIVER_SQLITE,
    "postgres": "postgresql",
    "postgresql": "postgresql",
    "pgsql": "postgresql",
    "mysql": "mysql",
    "mariadb": "mysql",
}

_DIALECTS = {
    "postgresql": "postgresql+psycopg",
    "mysql": "mysql+pymysql",
}


@dataclass(slots=True)
class DatabaseOptions:
    """Connection options derived from the database settings."""

    driver: str
    database: str
    host: str = ""
    port: str = ""
    username: str = ""
    password: str = ""
    charset: str = DEFAULT_CHARSET
    timezone: str = DEFAULT_TIMEZONE
    ssl_mode: str = ""

    @property
    def is_sqlite(self) -> bool:
        return self.driver == DRIVER_SQLITE

    @classmethod
    def from_config(cls, config: Config) -> "DatabaseOptions":
        settings = config.database
        driver = normalize_driver(settings.driver)
        ssl_mode = ""
        if driver != DRIVER_SQLITE:
            ssl_mode = settings.ssl_mode.strip() or DEFAULT_SSL_MODE
        return cls(
            driver=driver,
            database=settings.name,
            host=settings.host,
            port=settings.port,
            username=settings.username,
            password=settings.password,
            ssl_mode=ssl_mode,
        )


def normalize_driver(driver: str) -> str:
    key = driver.strip().lower()
    try:
        return _DRIVER_ALIASES[key]
    except KeyError as exc:
        raise DatabaseOpenError(f"database: unsupported driver {driver!r}") from exc


def _port(value: str) -> int | None:
    if not value.strip():
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise DatabaseOpenError(f"database: invalid port {value!r}") from exc


def build_url(options: DatabaseOptions) -> URL:
    """Translate ``options`` into a SQLAlchemy URL."""

    if options.is_sqlite:
        uri_query = {"uri": "true"} if options.database.startswith("file:") else {}
        return URL.create("sqlite", database=options.database, query=uri_query)

    query: dict[str, str] = {}
    if options.driver == "postgresql":
        query["sslmode"] = options.ssl_mode
    elif options.driver == "mysql":
        query["charset"] = options.charset
    return URL.create(
        _DIALECTS[options.driver],
        username=options.username or None,
        password=options.password or None,
        host=options.host or None,
        port=_port(options.port),
        database=options.database,
        query=query,
    )


def _apply_sqlite_pragmas(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            try:
                cursor.execute(pragma)
            except Exception:  # pragma: no cover - best effort tuning
                logger.warning("database.sqlite.pragma_failed", extra={"pragma": pragma}, exc_info=True)
    finally:
        cursor.close()


def _connect_args(options: DatabaseOptions) -> dict[str, object]:
    if options.is_sqlite:
        return {"check_same_thread": False}
    if options.driver == "postgresql":
        return {"options": f"-c timezone={options.timezone}"}
    if options.driver == "mysql":
        return {"init_command": "SET time_zone = '+00:00'"} if options.timezone == "UTC" else {}
    return {}


def create_database_engine(options: DatabaseOptions) -> Engine:
    url = build_url(options)
    if options.is_sqlite:
        # Single connection: SQLite allows one writer and ":memory:" databases
        # exist per connection.
        engine = sa.create_engine(
            url,
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=0,
            connect_args=_connect_args(options),
        )
        sa.event.listen(engine, "connect", _apply_sqlite_pragmas)
        return engine

    return sa.create_engine(
        url,
        pool_size=SERVER_POOL_SIZE,
        max_overflow=SERVER_MAX_OVERFLOW,
        pool_recycle=int(SERVER_POOL_RECYCLE.total_seconds()),
        pool_pre_ping=True,
        connect_args=_connect_args(options),
    )


def open_database(config: Config | None) -> Engine:
    """Open the database described by ``config`` and verify connectivity.

    The caller owns the returned engine and must ``dispose()`` it.
    """

    if config is None:
        raise DatabaseOpenError("database: config is required")

    options = DatabaseOptions.from_config(config)
    try:
        engine = create_database_engine(options)
    except DatabaseOpenError:
        raise
    except Exception as exc:
        raise DatabaseOpenError(f"database: failed to create engine: {exc}") from exc

    try:
        with engine.connect() as conn:
            conn.execute(sa.text("SELECT 1"))
    except Exception as exc:
        engine.dispose()
        raise DatabaseOpenError(f"database: failed to open {options.driver} connection: {exc}") from exc

    logger.info(
        "database.opened",
        extra={"driver": options.driver, "database": options.database if options.is_sqlite else options.host},
    )
    return engine


__all__ = [
    "DatabaseOptions",
    "SQLITE_PRAGMAS",
    "build_url",
    "create_database_engine",
    "normalize_driver",
    "open_database",
]

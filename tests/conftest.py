from __future__ import annotations

from typing import Iterator

import pytest
from sqlalchemy.engine import Engine

from webscaffold.core.config import Config
from webscaffold.db.database import open_database

MINIMAL_ENV = {
    "APP_HOST": "localhost",
    "APP_PORT": "8080",
    "APP_ENV": "testing",
    "DB_DRIVER": "sqlite",
    "DB_DATABASE": ":memory:",
}


@pytest.fixture()
def minimal_env() -> dict[str, str]:
    """Fresh copy of the smallest environment that loads successfully."""

    return dict(MINIMAL_ENV)


@pytest.fixture()
def sqlite_config() -> Config:
    return Config.for_testing()


@pytest.fixture()
def engine(sqlite_config: Config) -> Iterator[Engine]:
    db = open_database(sqlite_config)
    try:
        yield db
    finally:
        db.dispose()

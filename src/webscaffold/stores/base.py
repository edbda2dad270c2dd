"""Shared plumbing for the SQLAlchemy Core stores."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from ..exceptions import handle_sqlalchemy_errors

TABLE_PREFIX = "snv_"


def table_name(domain: str, entity: str | None = None) -> str:
    """Return the stable ``snv_<domain>_<entity>`` table name."""

    if entity is None:
        return f"{TABLE_PREFIX}{domain}"
    return f"{TABLE_PREFIX}{domain}_{entity}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


def timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, default=utcnow),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    ]


@runtime_checkable
class Store(Protocol):
    """Minimal capability every store offers to the registry."""

    def auto_migrate(self) -> None:
        ...


class SqlStore:
    """Base class binding a store to an engine and its table metadata.

    Construction only records references; the schema is created by
    :meth:`auto_migrate`.
    """

    metadata: sa.MetaData
    entity: str = "store"

    def __init__(self, engine: Engine) -> None:
        if engine is None:
            raise ValueError(f"{self.entity}: engine is required")
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def table_names(self) -> list[str]:
        return sorted(self.metadata.tables)

    def auto_migrate(self) -> None:
        with handle_sqlalchemy_errors(entity=self.entity):
            self.metadata.create_all(self._engine)


__all__ = ["SqlStore", "Store", "TABLE_PREFIX", "new_id", "table_name", "timestamps", "utcnow"]

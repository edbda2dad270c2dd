"""Application log records persisted in the database."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Mapping

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, utcnow

_metadata = sa.MetaData()

logs = sa.Table(
    table_name("logs", "log"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("level", sa.String(20), nullable=False, index=True),
    sa.Column("message", sa.Text, nullable=False, default=""),
    sa.Column("context", sa.Text, nullable=False, default="{}"),
    sa.Column("time", sa.DateTime(timezone=True), nullable=False, default=utcnow, index=True),
)


class LogStore(SqlStore):
    metadata = _metadata
    entity = "log"

    def log_create(
        self,
        level: str,
        message: str,
        context: Mapping[str, Any] | None = None,
        *,
        time: datetime | None = None,
    ) -> str:
        log_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(logs).values(
                    id=log_id,
                    level=level.lower(),
                    message=message,
                    context=json.dumps(dict(context or {}), default=str),
                    time=time or utcnow(),
                )
            )
        return log_id

    def log_list(self, *, level: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        stmt = sa.select(logs).order_by(logs.c.time.desc()).limit(limit)
        if level is not None:
            stmt = stmt.where(logs.c.level == level.lower())
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [dict(row, context=json.loads(row["context"] or "{}")) for row in rows]

    def log_count(self, *, level: str | None = None) -> int:
        stmt = sa.select(sa.func.count()).select_from(logs)
        if level is not None:
            stmt = stmt.where(logs.c.level == level.lower())
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one())


__all__ = ["LogStore", "logs"]

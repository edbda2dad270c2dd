"""Schemaless records grouped by a free-form type."""

from __future__ import annotations

import json
from typing import Any, Mapping

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

_metadata = sa.MetaData()

records = sa.Table(
    table_name("custom", "record"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("record_type", sa.String(100), nullable=False, index=True),
    sa.Column("payload", sa.Text, nullable=False, default="{}"),
    *timestamps(),
)


def _decode(row: Mapping[str, Any]) -> dict[str, Any]:
    item = dict(row)
    item["payload"] = json.loads(item["payload"] or "{}")
    return item


class CustomStore(SqlStore):
    metadata = _metadata
    entity = "custom"

    def record_create(self, record_type: str, payload: Mapping[str, Any]) -> str:
        record_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(records).values(
                    id=record_id,
                    record_type=record_type,
                    payload=json.dumps(dict(payload), default=str),
                )
            )
        return record_id

    def record_find(self, record_id: str) -> dict[str, Any] | None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(sa.select(records).where(records.c.id == record_id)).mappings().first()
        return _decode(row) if row is not None else None

    def record_list(self, record_type: str, *, limit: int = 100) -> list[dict[str, Any]]:
        stmt = (
            sa.select(records)
            .where(records.c.record_type == record_type)
            .order_by(records.c.created_at)
            .limit(limit)
        )
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return [_decode(row) for row in conn.execute(stmt).mappings()]


__all__ = ["CustomStore", "records"]

"""Audit trail of changes made to application entities."""

from __future__ import annotations

import json
from typing import Any, Mapping

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, utcnow

_metadata = sa.MetaData()

audit_records = sa.Table(
    table_name("audit", "record"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("entity_type", sa.String(64), nullable=False, index=True),
    sa.Column("entity_id", sa.String(64), nullable=False, default=""),
    sa.Column("action", sa.String(32), nullable=False),
    sa.Column("actor_id", sa.String(64), nullable=False, default=""),
    sa.Column("payload", sa.Text, nullable=False, default="{}"),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, default=utcnow),
)


class AuditStore(SqlStore):
    metadata = _metadata
    entity = "audit"

    def record(
        self,
        action: str,
        *,
        entity_type: str,
        entity_id: str = "",
        actor_id: str = "",
        payload: Mapping[str, Any] | None = None,
    ) -> str:
        record_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(audit_records).values(
                    id=record_id,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    action=action,
                    actor_id=actor_id,
                    payload=json.dumps(dict(payload or {}), default=str),
                )
            )
        return record_id

    def list_records(self, *, entity_type: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        stmt = sa.select(audit_records).order_by(audit_records.c.created_at.desc()).limit(limit)
        if entity_type is not None:
            stmt = stmt.where(audit_records.c.entity_type == entity_type)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        records = []
        for row in rows:
            item = dict(row)
            item["payload"] = json.loads(item["payload"] or "{}")
            records.append(item)
        return records


__all__ = ["AuditStore", "audit_records"]

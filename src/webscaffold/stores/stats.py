"""Visitor statistics."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

_metadata = sa.MetaData()

visitors = sa.Table(
    table_name("stats", "visitor"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("path", sa.String(510), nullable=False, default="/"),
    sa.Column("ip_address", sa.String(45), nullable=False, default=""),
    sa.Column("user_agent", sa.String(512), nullable=False, default=""),
    sa.Column("referrer", sa.String(510), nullable=False, default=""),
    sa.Column("fingerprint", sa.String(64), nullable=False, default="", index=True),
    *timestamps(),
)


class StatsStore(SqlStore):
    metadata = _metadata
    entity = "stats"

    def visitor_register(
        self,
        path: str,
        *,
        ip_address: str = "",
        user_agent: str = "",
        referrer: str = "",
        fingerprint: str = "",
    ) -> str:
        visitor_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(visitors).values(
                    id=visitor_id,
                    path=path,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    referrer=referrer,
                    fingerprint=fingerprint,
                )
            )
        return visitor_id

    def visitor_count(self, *, since: datetime | None = None, unique: bool = False) -> int:
        column = sa.func.count(sa.distinct(visitors.c.fingerprint)) if unique else sa.func.count()
        stmt = sa.select(column).select_from(visitors)
        if since is not None:
            stmt = stmt.where(visitors.c.created_at >= since)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one())


__all__ = ["StatsStore", "visitors"]

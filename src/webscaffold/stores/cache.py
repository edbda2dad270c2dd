"""Database-backed key/value cache shared across processes."""

from __future__ import annotations

from datetime import datetime, timedelta

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps, utcnow

_metadata = sa.MetaData()

cache_entries = sa.Table(
    table_name("caches", "cache"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("cache_key", sa.String(255), nullable=False, unique=True),
    sa.Column("cache_value", sa.Text, nullable=False, default=""),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    *timestamps(),
)


class CacheStore(SqlStore):
    metadata = _metadata
    entity = "cache"

    def set(self, key: str, value: str, ttl: timedelta, *, now: datetime | None = None) -> None:
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        expires_at = (now or utcnow()) + ttl
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            updated = conn.execute(
                sa.update(cache_entries)
                .where(cache_entries.c.cache_key == key)
                .values(cache_value=value, expires_at=expires_at)
            ).rowcount
            if not updated:
                conn.execute(
                    sa.insert(cache_entries).values(
                        id=new_id(),
                        cache_key=key,
                        cache_value=value,
                        expires_at=expires_at,
                    )
                )

    def get(self, key: str, default: str | None = None, *, now: datetime | None = None) -> str | None:
        stmt = sa.select(cache_entries.c.cache_value).where(
            cache_entries.c.cache_key == key,
            cache_entries.c.expires_at > (now or utcnow()),
        )
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            value = conn.execute(stmt).scalar_one_or_none()
        return default if value is None else value

    def remove(self, key: str) -> bool:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return bool(conn.execute(sa.delete(cache_entries).where(cache_entries.c.cache_key == key)).rowcount)

    def expire_now(self, *, now: datetime | None = None) -> int:
        """Delete every expired entry and return how many were removed."""

        stmt = sa.delete(cache_entries).where(cache_entries.c.expires_at <= (now or utcnow()))
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return conn.execute(stmt).rowcount


__all__ = ["CacheStore", "cache_entries"]

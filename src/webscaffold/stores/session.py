"""Server-side HTTP sessions."""

from __future__ import annotations

from datetime import datetime, timedelta

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps, utcnow

DEFAULT_SESSION_TTL = timedelta(hours=2)

_metadata = sa.MetaData()

sessions = sa.Table(
    table_name("sessions", "session"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("session_key", sa.String(255), nullable=False, unique=True),
    sa.Column("user_id", sa.String(64), nullable=False, default=""),
    sa.Column("ip_address", sa.String(45), nullable=False, default=""),
    sa.Column("user_agent", sa.String(512), nullable=False, default=""),
    sa.Column("session_value", sa.Text, nullable=False, default=""),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False, index=True),
    *timestamps(),
)


class SessionStore(SqlStore):
    metadata = _metadata
    entity = "session"

    def session_set(
        self,
        key: str,
        value: str,
        *,
        user_id: str = "",
        ttl: timedelta = DEFAULT_SESSION_TTL,
        ip_address: str = "",
        user_agent: str = "",
        now: datetime | None = None,
    ) -> None:
        expires_at = (now or utcnow()) + ttl
        values = {
            "session_value": value,
            "user_id": user_id,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "expires_at": expires_at,
        }
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            updated = conn.execute(
                sa.update(sessions).where(sessions.c.session_key == key).values(**values)
            ).rowcount
            if not updated:
                conn.execute(sa.insert(sessions).values(id=new_id(), session_key=key, **values))

    def session_get(self, key: str, *, now: datetime | None = None) -> str | None:
        stmt = sa.select(sessions.c.session_value).where(
            sessions.c.session_key == key,
            sessions.c.expires_at > (now or utcnow()),
        )
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one_or_none()

    def session_delete(self, key: str) -> bool:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return bool(conn.execute(sa.delete(sessions).where(sessions.c.session_key == key)).rowcount)

    def expire_sessions(self, *, now: datetime | None = None) -> int:
        stmt = sa.delete(sessions).where(sessions.c.expires_at <= (now or utcnow()))
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return conn.execute(stmt).rowcount


__all__ = ["DEFAULT_SESSION_TTL", "SessionStore", "sessions"]

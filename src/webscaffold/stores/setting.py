"""Application settings editable at runtime."""

from __future__ import annotations

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

_metadata = sa.MetaData()

settings = sa.Table(
    table_name("settings"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("setting_key", sa.String(255), nullable=False, unique=True),
    sa.Column("setting_value", sa.Text, nullable=False, default=""),
    *timestamps(),
)


class SettingStore(SqlStore):
    metadata = _metadata
    entity = "setting"

    def get(self, key: str, default: str | None = None) -> str | None:
        stmt = sa.select(settings.c.setting_value).where(settings.c.setting_key == key)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            value = conn.execute(stmt).scalar_one_or_none()
        return default if value is None else value

    def set(self, key: str, value: str) -> None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            updated = conn.execute(
                sa.update(settings).where(settings.c.setting_key == key).values(setting_value=value)
            ).rowcount
            if not updated:
                conn.execute(sa.insert(settings).values(id=new_id(), setting_key=key, setting_value=value))

    def remove(self, key: str) -> bool:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return bool(conn.execute(sa.delete(settings).where(settings.c.setting_key == key)).rowcount)


__all__ = ["SettingStore", "settings"]

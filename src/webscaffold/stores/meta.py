"""Key/value metadata attached to arbitrary objects."""

from __future__ import annotations

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

_metadata = sa.MetaData()

metas = sa.Table(
    table_name("metas", "meta"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("object_type", sa.String(50), nullable=False),
    sa.Column("object_id", sa.String(64), nullable=False),
    sa.Column("meta_key", sa.String(255), nullable=False),
    sa.Column("meta_value", sa.Text, nullable=False, default=""),
    *timestamps(),
    sa.UniqueConstraint("object_type", "object_id", "meta_key"),
)


class MetaStore(SqlStore):
    metadata = _metadata
    entity = "meta"

    def _match(self, object_type: str, object_id: str, key: str):
        return sa.and_(
            metas.c.object_type == object_type,
            metas.c.object_id == object_id,
            metas.c.meta_key == key,
        )

    def meta_set(self, object_type: str, object_id: str, key: str, value: str) -> None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            updated = conn.execute(
                sa.update(metas).where(self._match(object_type, object_id, key)).values(meta_value=value)
            ).rowcount
            if not updated:
                conn.execute(
                    sa.insert(metas).values(
                        id=new_id(),
                        object_type=object_type,
                        object_id=object_id,
                        meta_key=key,
                        meta_value=value,
                    )
                )

    def meta_get(self, object_type: str, object_id: str, key: str) -> str | None:
        stmt = sa.select(metas.c.meta_value).where(self._match(object_type, object_id, key))
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one_or_none()

    def meta_remove(self, object_type: str, object_id: str, key: str) -> bool:
        stmt = sa.delete(metas).where(self._match(object_type, object_id, key))
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            return bool(conn.execute(stmt).rowcount)


__all__ = ["MetaStore", "metas"]

"""Entity-attribute-value storage with soft deletion into trash tables."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa

from ..exceptions import TransientStoreError, handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps, utcnow

_metadata = sa.MetaData()


def _entity_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("entity_type", sa.String(40), nullable=False, index=True),
        sa.Column("entity_handle", sa.String(60), nullable=False, default=""),
        *timestamps(),
    ]


def _attribute_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("entity_id", sa.String(32), nullable=False, index=True),
        sa.Column("attribute_key", sa.String(255), nullable=False),
        sa.Column("attribute_value", sa.Text, nullable=False, default=""),
        *timestamps(),
    ]


entities = sa.Table(table_name("entities", "entity"), _metadata, *_entity_columns())
entities_trash = sa.Table(
    table_name("entities", "entity_trash"),
    _metadata,
    *_entity_columns(),
    sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False, default=utcnow),
    sa.Column("deleted_by", sa.String(64), nullable=False, default=""),
)
attributes = sa.Table(
    table_name("entities", "attribute"),
    _metadata,
    *_attribute_columns(),
    sa.UniqueConstraint("entity_id", "attribute_key"),
)
attributes_trash = sa.Table(
    table_name("entities", "attribute_trash"),
    _metadata,
    *_attribute_columns(),
    sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False, default=utcnow),
    sa.Column("deleted_by", sa.String(64), nullable=False, default=""),
)


class EntityStore(SqlStore):
    metadata = _metadata
    entity = "entity"

    def entity_create(self, entity_type: str, *, handle: str = "", attrs: dict[str, str] | None = None) -> str:
        entity_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(sa.insert(entities).values(id=entity_id, entity_type=entity_type, entity_handle=handle))
            for key, value in (attrs or {}).items():
                conn.execute(
                    sa.insert(attributes).values(
                        id=new_id(),
                        entity_id=entity_id,
                        attribute_key=key,
                        attribute_value=value,
                    )
                )
        return entity_id

    def attribute_set(self, entity_id: str, key: str, value: str) -> None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            updated = conn.execute(
                sa.update(attributes)
                .where(attributes.c.entity_id == entity_id, attributes.c.attribute_key == key)
                .values(attribute_value=value)
            ).rowcount
            if not updated:
                conn.execute(
                    sa.insert(attributes).values(
                        id=new_id(),
                        entity_id=entity_id,
                        attribute_key=key,
                        attribute_value=value,
                    )
                )

    def attribute_get(self, entity_id: str, key: str) -> str | None:
        stmt = sa.select(attributes.c.attribute_value).where(
            attributes.c.entity_id == entity_id,
            attributes.c.attribute_key == key,
        )
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one_or_none()

    def entity_find(self, entity_id: str) -> dict[str, Any] | None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(sa.select(entities).where(entities.c.id == entity_id)).mappings().first()
        return dict(row) if row is not None else None

    def entity_trash(self, entity_id: str, *, deleted_by: str = "") -> None:
        """Move the entity and its attributes into the trash tables."""

        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            row = conn.execute(sa.select(entities).where(entities.c.id == entity_id)).mappings().first()
            if row is None:
                raise TransientStoreError(f"entity: {entity_id} not found")
            conn.execute(sa.insert(entities_trash).values(**dict(row), deleted_by=deleted_by))
            attribute_rows = conn.execute(
                sa.select(attributes).where(attributes.c.entity_id == entity_id)
            ).mappings().all()
            if attribute_rows:
                conn.execute(
                    sa.insert(attributes_trash),
                    [dict(item, deleted_by=deleted_by) for item in attribute_rows],
                )
            conn.execute(sa.delete(attributes).where(attributes.c.entity_id == entity_id))
            conn.execute(sa.delete(entities).where(entities.c.id == entity_id))


__all__ = ["EntityStore", "attributes", "attributes_trash", "entities", "entities_trash"]

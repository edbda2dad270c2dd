"""RSS/Atom feeds and the links collected from them."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

_metadata = sa.MetaData()

feeds = sa.Table(
    table_name("feeds", "feed"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("url", sa.String(510), nullable=False, unique=True),
    sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=True),
    *timestamps(),
)

links = sa.Table(
    table_name("feeds", "link"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("feed_id", sa.String(32), sa.ForeignKey(feeds.c.id, ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("title", sa.String(510), nullable=False, default=""),
    sa.Column("url", sa.String(510), nullable=False),
    sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
    *timestamps(),
    sa.UniqueConstraint("feed_id", "url"),
)


class FeedStore(SqlStore):
    metadata = _metadata
    entity = "feed"

    def feed_create(self, name: str, url: str) -> str:
        feed_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(sa.insert(feeds).values(id=feed_id, name=name, url=url))
        return feed_id

    def link_create(
        self,
        feed_id: str,
        url: str,
        *,
        title: str = "",
        published_at: datetime | None = None,
    ) -> str:
        link_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(links).values(
                    id=link_id,
                    feed_id=feed_id,
                    url=url,
                    title=title,
                    published_at=published_at,
                )
            )
        return link_id

    def link_list(self, feed_id: str, *, limit: int = 50) -> list[dict[str, Any]]:
        stmt = (
            sa.select(links)
            .where(links.c.feed_id == feed_id)
            .order_by(links.c.published_at.desc(), links.c.created_at.desc())
            .limit(limit)
        )
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]


__all__ = ["FeedStore", "feeds", "links"]

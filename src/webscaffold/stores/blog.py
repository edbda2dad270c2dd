"""Blog posts."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa

from ..exceptions import handle_sqlalchemy_errors
from .base import SqlStore, new_id, table_name, timestamps

POST_STATUS_DRAFT = "draft"
POST_STATUS_PUBLISHED = "published"

_metadata = sa.MetaData()

posts = sa.Table(
    table_name("blogs", "post"),
    _metadata,
    sa.Column("id", sa.String(32), primary_key=True),
    sa.Column("status", sa.String(20), nullable=False, default=POST_STATUS_DRAFT),
    sa.Column("title", sa.String(255), nullable=False),
    sa.Column("summary", sa.Text, nullable=False, default=""),
    sa.Column("content", sa.Text, nullable=False, default=""),
    sa.Column("author_id", sa.String(64), nullable=False, default=""),
    sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
    *timestamps(),
)


class BlogStore(SqlStore):
    metadata = _metadata
    entity = "blog"

    def post_create(
        self,
        title: str,
        *,
        content: str = "",
        summary: str = "",
        author_id: str = "",
        status: str = POST_STATUS_DRAFT,
    ) -> str:
        post_id = new_id()
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.begin() as conn:
            conn.execute(
                sa.insert(posts).values(
                    id=post_id,
                    title=title,
                    content=content,
                    summary=summary,
                    author_id=author_id,
                    status=status,
                )
            )
        return post_id

    def post_find_by_id(self, post_id: str) -> dict[str, Any] | None:
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            row = conn.execute(sa.select(posts).where(posts.c.id == post_id)).mappings().first()
        return dict(row) if row is not None else None

    def post_list(self, *, status: str | None = None, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
        stmt = sa.select(posts).order_by(posts.c.created_at.desc()).limit(limit).offset(offset)
        if status is not None:
            stmt = stmt.where(posts.c.status == status)
        with handle_sqlalchemy_errors(entity=self.entity), self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]


__all__ = ["BlogStore", "POST_STATUS_DRAFT", "POST_STATUS_PUBLISHED", "posts"]
